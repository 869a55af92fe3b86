"""Command-line dispatch for a SQLite- or PostgreSQL-backed wage stream."""
