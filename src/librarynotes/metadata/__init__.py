"""Metadata block parsing and surgical field updates."""
