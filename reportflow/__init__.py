"""Activity report verification and aggregation service."""
