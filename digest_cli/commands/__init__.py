"""Command implementations for the Digest CLI."""

from . import summarize

__all__ = ["summarize"]
