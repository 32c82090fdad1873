"""Refresh controller: countdown-driven background reloads."""
