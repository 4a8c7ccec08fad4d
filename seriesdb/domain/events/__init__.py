"""Domain events published by database instances."""
