"""Command-line interface for docrag."""

from docrag.cli.main import app

__all__ = ["app"]
