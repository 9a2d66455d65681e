"""Utility helpers: configuration constants and file I/O."""
