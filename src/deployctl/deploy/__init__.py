"""Routing of downloaded deployment source to stdout or disk."""

from .consumer import consume_entries, render_entry
from .paths import specifier_to_path

__all__ = ["consume_entries", "render_entry", "specifier_to_path"]
