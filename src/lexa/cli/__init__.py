"""Command-line interface for lexa."""

from .app import app, main

__all__ = ["app", "main"]
