"""Discovery of index schemas (mappings) for a database instance.

Schemas come either inline from configuration or from a directory holding
one YAML/JSON file per index, the file's stem being the index name.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

logger = logging.getLogger(__name__)

SCHEMA_FILE_SUFFIXES = (".yaml", ".yml", ".json")


def load_schema_directory(directory: Path) -> Dict[str, Dict[str, Any]]:
    """Loads every schema file in ``directory``, keyed by file stem.

    Unreadable or non-mapping files are skipped with an error log.
    """
    schemas: Dict[str, Dict[str, Any]] = {}
    if not directory.is_dir():
        logger.debug(f"Schema directory not found: {directory}")
        return schemas
    for path in sorted(directory.iterdir()):
        if path.suffix.lower() not in SCHEMA_FILE_SUFFIXES or not path.is_file():
            continue
        try:
            with open(path, 'r', encoding='utf-8') as f:
                schema = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load schema file {path}: {e}")
            continue
        if not isinstance(schema, dict):
            logger.error(f"Schema file {path} did not contain a mapping; skipping.")
            continue
        schemas[path.stem] = schema
    logger.debug(f"Loaded {len(schemas)} schema(s) from {directory}")
    return schemas


def load_schemas(
    indices: Union[str, Path, Mapping[str, Any], None],
    cwd: Optional[Path] = None,
) -> Dict[str, Dict[str, Any]]:
    """Resolves the ``indices`` setting into ``{index: schema}``.

    Args:
        indices: Inline mapping, or a directory path (relative paths are
            resolved against ``cwd``).
        cwd: Base directory for relative paths; defaults to the working directory.
    """
    if not indices:
        return {}
    if isinstance(indices, Mapping):
        return {name: dict(schema or {}) for name, schema in indices.items()}
    directory = Path(indices)
    if not directory.is_absolute():
        directory = (cwd or Path.cwd()) / directory
    return load_schema_directory(directory)
