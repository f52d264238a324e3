"""Shared helpers: HTTP, logging and errors."""
