"""Persistent cache backend (DuckDB)."""
