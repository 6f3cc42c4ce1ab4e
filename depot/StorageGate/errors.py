"""
StorageGate error taxonomy.

Policy errors are raised before the filesystem is touched where possible;
StorageFailure wraps underlying OS errors. Every error carries the HTTP
status the web layer answers with and a message safe to show clients.
"""


class StorageError(Exception):
    """Base class for all StorageGate errors."""

    status_code = 500

    def __init__(self, message: str, path: str = ""):
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict:
        """Client-facing error body."""
        return {"error": self.message}


class InvalidPath(StorageError):
    """Raised when a logical path escapes the root or contains illegal characters."""

    status_code = 400


class InvalidName(StorageError):
    """Raised when a user-supplied name is empty or a reserved token."""

    status_code = 400


class AlreadyExists(StorageError):
    """Raised when the target name is already taken by a sibling."""

    status_code = 400


class NotFound(StorageError):
    """Raised when the target of an operation does not exist."""

    status_code = 404


class PayloadTooLarge(StorageError):
    """Raised when an upload exceeds the per-file size limit."""

    status_code = 413

    def __init__(self, limit_bytes: int, path: str = ""):
        self.limit_bytes = limit_bytes
        limit_mb = limit_bytes / (1024 * 1024)
        super().__init__(f"File exceeds the upload limit ({limit_mb:g}MB)", path)


class StorageFailure(StorageError):
    """Raised when the underlying filesystem call fails."""

    status_code = 500
