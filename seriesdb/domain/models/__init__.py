"""Domain models: value objects, configuration and snapshot structures."""
