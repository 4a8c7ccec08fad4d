"""Construction of the asynchronous Elasticsearch client from configuration."""

import logging
from typing import Any, Dict, Mapping

from elasticsearch import AsyncElasticsearch

logger = logging.getLogger(__name__)


def _normalize_host(host: str) -> str:
    """Accepts 'host:port' shorthand as well as full URLs."""
    if "://" in host:
        return host
    return f"http://{host}"


def create_search_client(options: Mapping[str, Any]) -> AsyncElasticsearch:
    """Creates an AsyncElasticsearch client.

    Args:
        options: Client settings. ``host`` (or ``hosts``) names the endpoint(s);
            every other key is passed to the client constructor unchanged
            (e.g. ``basic_auth``, ``api_key``, ``request_timeout``).
    """
    settings: Dict[str, Any] = dict(options)
    hosts = settings.pop("hosts", None) or settings.pop("host", None) or "localhost:9200"
    settings.pop("host", None)
    if isinstance(hosts, str):
        hosts = [hosts]
    hosts = [_normalize_host(host) if isinstance(host, str) else host for host in hosts]
    logger.debug(f"Creating search client for hosts {hosts}")
    return AsyncElasticsearch(hosts=hosts, **settings)
