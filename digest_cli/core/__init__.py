"""Core utilities for the Digest CLI."""
