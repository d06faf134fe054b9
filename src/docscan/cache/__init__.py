"""In-memory caches for parsed document content."""
