"""Metadata-aware organizer for a library of Markdown notes."""

__version__ = "0.3.0"
