"""Dashboard and reporting aggregates over delivery records."""
