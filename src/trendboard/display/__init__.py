"""Formatting helpers for panels and CLI output."""
