"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (search cluster, cache
backends, configuration files, console) by implementing the interfaces
defined in the domain layer.
"""
