"""Mapping of entry specifiers onto the local filesystem."""

from __future__ import annotations

import os
from typing import Optional
from urllib.parse import unquote, urlsplit

from deployctl.core.exceptions import InvariantViolation

SOURCE_ROOT = "/src/"


def specifier_to_path(specifier: str, destination_root: str) -> Optional[str]:
    """Return where a local entry is written below `destination_root`.

    Entries that do not come from the deployment's own files (any scheme
    other than ``file``) have no local destination and yield None.
    ``file:///src/a/b.js`` with root ``./out`` maps to ``out/a/b.js``.

    Raises:
        InvariantViolation: the path is outside ``/src/``, contains a NUL byte
            or would escape ``destination_root``
    """
    url = urlsplit(specifier)
    if url.scheme != "file":
        return None

    path = unquote(url.path)
    if not path.startswith(SOURCE_ROOT):
        raise InvariantViolation(f"local specifier outside of {SOURCE_ROOT}: {specifier}")
    if "\x00" in path:
        raise InvariantViolation(f"local specifier contains a NUL byte: {specifier!r}")

    relative = path[len(SOURCE_ROOT):]
    joined = os.path.normpath(os.path.join(destination_root, relative))

    root = os.path.abspath(destination_root)
    if os.path.commonpath([root, os.path.abspath(joined)]) != root:
        raise InvariantViolation(f"specifier escapes the output directory: {specifier}")
    return joined
