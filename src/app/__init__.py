"""HTTP service for listen import, export and statistics."""
