"""Construction of the underlying search client."""
