"""
StorageGate security module.

Translates client-supplied logical paths into absolute paths under the
storage root and rejects anything that could escape it.
"""

import os
import re
from typing import List

from .errors import InvalidPath

# Characters never allowed inside a single path segment
FORBIDDEN_SEGMENT_CHARS = re.compile(r'[<>:"|?*\x00-\x1f\x7f]')

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def normalize_path(path: str) -> str:
    """
    Normalize a filesystem path.

    Args:
        path: Raw path string

    Returns:
        Normalized absolute path
    """
    path = os.path.expanduser(path)
    path = os.path.normpath(path)
    return os.path.abspath(path)


def split_logical_path(logical_path: str) -> List[str]:
    """
    Split a logical path into validated segments.

    Both ``/`` and ``\\`` separate segments. Empty and ``.`` segments are
    dropped, so ``""``, ``"/"`` and ``"."`` all mean the storage root.

    Raises:
        InvalidPath: On ``..`` segments, drive prefixes or forbidden characters
    """
    if logical_path is None:
        return []
    if not isinstance(logical_path, str):
        raise InvalidPath("Path must be a string")

    if _DRIVE_PREFIX.match(logical_path):
        raise InvalidPath("Drive-qualified paths are not allowed", logical_path)

    segments = []
    for segment in re.split(r"[/\\]+", logical_path):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise InvalidPath("Parent directory references are not allowed", logical_path)
        if FORBIDDEN_SEGMENT_CHARS.search(segment):
            raise InvalidPath(f"Path segment contains forbidden characters: {segment!r}", logical_path)
        segments.append(segment)
    return segments


def normalize_logical(logical_path: str) -> str:
    """Return the canonical ``/``-joined form of a logical path."""
    return "/".join(split_logical_path(logical_path))


def is_within_root(root: str, target: str) -> bool:
    """Check that target is the root itself or lies beneath it."""
    root = normalize_path(root)
    target = normalize_path(target)
    try:
        return os.path.commonpath([root, target]) == root
    except ValueError:
        # Different drives on Windows
        return False


def resolve(root: str, logical_path: str) -> str:
    """
    Resolve a logical path to an absolute path under the storage root.

    Args:
        root: Absolute storage root
        logical_path: Client-supplied path, ``/``-separated, may be empty

    Returns:
        Absolute filesystem path

    Raises:
        InvalidPath: If the path is malformed or resolves outside the root
    """
    root = normalize_path(root)
    segments = split_logical_path(logical_path)
    target = normalize_path(os.path.join(root, *segments)) if segments else root

    if not is_within_root(root, target):
        raise InvalidPath("Path escapes the storage root", logical_path)

    return target


def parent_logical(logical_path: str) -> str:
    """Logical path of the containing folder (root for top-level entries)."""
    segments = split_logical_path(logical_path)
    return "/".join(segments[:-1])


def join_logical(parent: str, name: str) -> str:
    """Join a logical folder path and a child name."""
    parent = normalize_logical(parent)
    return f"{parent}/{name}" if parent else name
