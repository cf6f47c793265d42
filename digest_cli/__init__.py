"""Summarize long documents with LLM map-reduce and budgeted collapse."""
