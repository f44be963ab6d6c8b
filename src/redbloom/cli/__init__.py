"""Command-line interface for redbloom."""

from redbloom.cli.main import app

__all__ = ["app"]
