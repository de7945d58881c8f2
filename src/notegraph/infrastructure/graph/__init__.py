"""NetworkX projection of graph aggregates."""
