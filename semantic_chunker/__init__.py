"""Semantic chunking of tabbed documents with inline image placeholders."""

__version__ = "1.0.0"
