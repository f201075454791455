"""Quiz lookup, ingestion and submission."""
