"""Authorization core services."""
