"""Utility helpers for the plugin."""

from .fileio import read_text_file, write_text_file

__all__ = [
    "read_text_file",
    "write_text_file",
]
