"""
StorageGate naming policy.

Sanitizes user-supplied folder and rename targets and generates the
collision-free names uploaded files are stored under.
"""

import mimetypes
import os
import re
import time
import uuid
from typing import Optional

from .errors import InvalidName

# Prefix of in-flight upload files; never listed and never a valid user name
UPLOAD_TEMP_PREFIX = ".upload-"

MAX_NAME_LENGTH = 255

RESERVED_NAMES = (".", "..")

DEFAULT_MIMETYPE = "application/octet-stream"

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*]')
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _truncate(name: str) -> str:
    """Limit a name to MAX_NAME_LENGTH characters, keeping its extension."""
    if len(name) <= MAX_NAME_LENGTH:
        return name
    stem, ext = os.path.splitext(name)
    if len(ext) >= MAX_NAME_LENGTH:
        return name[:MAX_NAME_LENGTH]
    return stem[:MAX_NAME_LENGTH - len(ext)] + ext


def sanitize_segment_name(raw_name: Optional[str]) -> str:
    """
    Make a user-supplied name safe to use as a single path segment.

    Args:
        raw_name: Name typed by the user

    Returns:
        Sanitized name

    Raises:
        InvalidName: If nothing usable remains
    """
    if raw_name is None or not isinstance(raw_name, str):
        raise InvalidName("Name is required")

    name = _CONTROL_CHARS.sub("", raw_name).strip()
    name = _ILLEGAL_CHARS.sub("_", name)
    name = _truncate(name)

    if not name:
        raise InvalidName("Name is required")
    if name in RESERVED_NAMES:
        raise InvalidName(f"Name {name!r} is reserved")
    if name.startswith(UPLOAD_TEMP_PREFIX):
        raise InvalidName(f"Names starting with {UPLOAD_TEMP_PREFIX!r} are reserved")

    return name


def storage_extension(original_filename: Optional[str]) -> str:
    """Sanitized extension (with dot) of an uploaded file's basename."""
    if not original_filename:
        return ""
    basename = re.split(r"[/\\]", original_filename)[-1]
    _, ext = os.path.splitext(basename)
    ext = _CONTROL_CHARS.sub("", ext)
    ext = _ILLEGAL_CHARS.sub("_", ext)
    # Extensions longer than this are treated as part of the name
    if len(ext) > 32:
        return ""
    return ext


def generate_storage_name(original_filename: Optional[str]) -> str:
    """
    Generate the unique physical filename for an upload.

    ``<epoch millis>-<uuid4><ext>``; the random component keeps names unique
    across concurrent uploads of identically named files.
    """
    millis = int(time.time() * 1000)
    return f"{millis}-{uuid.uuid4()}{storage_extension(original_filename)}"


def temp_upload_name() -> str:
    """Hidden name for a file still being written."""
    return f"{UPLOAD_TEMP_PREFIX}{uuid.uuid4().hex}.part"


def is_temp_upload(name: str) -> bool:
    return name.startswith(UPLOAD_TEMP_PREFIX)


def guess_mimetype(original_filename: Optional[str], declared: Optional[str] = None) -> str:
    """
    MIME hint for an upload.

    The content type declared by the client wins; otherwise guess from the
    original filename.
    """
    if declared:
        return declared
    if original_filename:
        guessed, _ = mimetypes.guess_type(original_filename)
        if guessed:
            return guessed
    return DEFAULT_MIMETYPE
