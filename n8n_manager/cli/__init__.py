"""Command line interface for n8n Manager."""

from .app import app, run

__all__ = ["app", "run"]
