"""Folder resolution and document relocation."""
