"""Console presentation for the seriesdb CLI."""
