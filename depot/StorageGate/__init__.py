"""
StorageGate - Managed storage tree for Depot.

Provides:
- Path resolution bounded by a single storage root
- Ordered tree listings rebuilt from disk on every call
- Folder creation, uploads, rename and batch delete
- Collision-free storage names for uploaded files

Usage:
    from depot.StorageGate import StorageGate

    # Initialize (call on startup)
    StorageGate.initialize("/srv/depot")

    # Create a folder and upload into it
    StorageGate.create_folder("", "docs")
    with open("report.pdf", "rb") as f:
        stored = StorageGate.place_upload("docs", "report.pdf", f)

    # Fresh tree
    tree = StorageGate.list_tree()
"""

import os
from typing import Any, BinaryIO, Dict, Iterable, List, Optional

from depot import Config
from depot.shared.gate import (
    GateErrorHandler,
    GateLogger,
    PathUtils,
    build_health_status,
)

from .errors import (
    StorageError,
    InvalidPath,
    InvalidName,
    AlreadyExists,
    NotFound,
    PayloadTooLarge,
    StorageFailure,
)
from .models import (
    Node,
    NodeType,
    StoredFile,
    FolderCreated,
    RenameResult,
    DeleteResult,
    DeleteError,
)
from .security import normalize_path
from . import operations as ops
from . import query

# Logger for this gate
_log = GateLogger.get("StorageGate")

# Module-level state
_root: Optional[str] = None
_max_upload_bytes: int = ops.DEFAULT_MAX_UPLOAD_BYTES
_chunk_size: int = ops.DEFAULT_CHUNK_SIZE
_initialized: bool = False


class StorageGate:
    """
    Main interface for Depot's storage tree.

    All methods are class methods for easy access throughout the application.
    """

    @classmethod
    def initialize(
        cls,
        storage_root: Optional[str] = None,
        max_upload_mb: Optional[int] = None,
        chunk_size: Optional[int] = None,
    ) -> bool:
        """
        Initialize the storage gate.

        Args:
            storage_root: Storage directory (default: STORAGE_ROOT config)
            max_upload_mb: Per-file upload limit (default: MAX_UPLOAD_MB config)
            chunk_size: Upload copy chunk size (default: UPLOAD_CHUNK_SIZE config)

        Returns:
            True if initialization successful
        """
        global _root, _max_upload_bytes, _chunk_size, _initialized

        try:
            root = normalize_path(storage_root or Config.get("STORAGE_ROOT", "uploads"))
            PathUtils.ensure_dirs(root)

            limit_mb = max_upload_mb or Config.get("MAX_UPLOAD_MB", 100)
            _max_upload_bytes = int(limit_mb) * 1024 * 1024
            _chunk_size = int(chunk_size or Config.get("UPLOAD_CHUNK_SIZE", ops.DEFAULT_CHUNK_SIZE))
            _root = root

            _initialized = True
            _log.info(f"Initialized with storage root {root}")
            return True

        except (OSError, ValueError, TypeError) as e:
            _log.error(f"Initialization failed: {e}")
            return False

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if the gate is initialized."""
        return _initialized

    @classmethod
    def get_root(cls) -> str:
        """Absolute storage root, initializing from config if needed."""
        if _root is None:
            if not cls.initialize():
                raise RuntimeError("StorageGate initialization failed. Check STORAGE_ROOT and permissions.")
        return _root

    @classmethod
    def get_limits(cls) -> Dict[str, int]:
        """Upload limits in effect."""
        return {"max_upload_bytes": _max_upload_bytes, "chunk_size": _chunk_size}

    # ==================== Health Checks ====================

    @classmethod
    @GateErrorHandler.wrap("StorageGate", "health check", default_return=False)
    def is_healthy(cls) -> bool:
        """Check the storage root is a readable, writable directory."""
        if not _initialized:
            return False
        return os.path.isdir(_root) and os.access(_root, os.R_OK | os.W_OK)

    @classmethod
    def get_health_status(cls) -> Dict[str, Any]:
        """Get detailed health information."""
        checks = {}
        details = {}

        if _initialized:
            checks["root_exists"] = os.path.isdir(_root)
            checks["root_writable"] = checks["root_exists"] and os.access(_root, os.W_OK)
            details["max_upload_mb"] = _max_upload_bytes // (1024 * 1024)

        return build_health_status(
            gate_name="StorageGate",
            initialized=_initialized,
            dependencies=cls.get_dependencies(),
            checks=checks,
            details=details,
        )

    @classmethod
    def get_dependencies(cls) -> List[str]:
        """List external dependencies."""
        return ["filesystem"]

    # ==================== Queries ====================

    @classmethod
    def list_tree(cls) -> List[Node]:
        """Full ordered tree from the storage root."""
        return query.list_tree(cls.get_root())

    @classmethod
    def list_folder(cls, logical_path: str = "") -> List[Node]:
        """Direct children of a folder."""
        return query.list_folder(cls.get_root(), logical_path)

    @classmethod
    def find_node(cls, logical_path: str) -> Node:
        """Single node by logical path."""
        return query.find_node(cls.get_root(), logical_path)

    @classmethod
    def locate_file(cls, ref: str) -> str:
        """Absolute path of the file a download reference points at."""
        return query.locate_file(cls.get_root(), ref)

    # ==================== Mutations ====================

    @classmethod
    def create_folder(cls, parent_path: str, name: str) -> FolderCreated:
        """Create a folder below parent_path."""
        return ops.create_folder(cls.get_root(), parent_path, name)

    @classmethod
    def place_upload(
        cls,
        folder_path: str,
        original_name: str,
        stream: BinaryIO,
        declared_type: Optional[str] = None,
        declared_size: Optional[int] = None,
    ) -> StoredFile:
        """Persist an uploaded stream into folder_path."""
        return ops.place_upload(
            cls.get_root(),
            folder_path,
            original_name,
            stream,
            max_bytes=_max_upload_bytes,
            chunk_size=_chunk_size,
            declared_type=declared_type,
            declared_size=declared_size,
        )

    @classmethod
    def rename(cls, old_path: str, new_name: str) -> RenameResult:
        """Rename a file or folder within its parent."""
        return ops.rename(cls.get_root(), old_path, new_name)

    @classmethod
    def delete(cls, paths: Iterable[str]) -> DeleteResult:
        """Delete a batch of files and folders."""
        return ops.delete_paths(cls.get_root(), paths)


# ==================== Convenience Functions ====================

def initialize(storage_root: Optional[str] = None, max_upload_mb: Optional[int] = None) -> bool:
    """Initialize StorageGate."""
    return StorageGate.initialize(storage_root, max_upload_mb)


def is_initialized() -> bool:
    """Check if initialized."""
    return StorageGate.is_initialized()


def get_health_status() -> Dict[str, Any]:
    """Get health status."""
    return StorageGate.get_health_status()


def list_tree() -> List[Node]:
    """Full ordered tree."""
    return StorageGate.list_tree()


def list_folder(logical_path: str = "") -> List[Node]:
    """Direct children of a folder."""
    return StorageGate.list_folder(logical_path)


def find_node(logical_path: str) -> Node:
    """Single node by logical path."""
    return StorageGate.find_node(logical_path)


def create_folder(parent_path: str, name: str) -> FolderCreated:
    """Create a folder."""
    return StorageGate.create_folder(parent_path, name)


def rename(old_path: str, new_name: str) -> RenameResult:
    """Rename a file or folder."""
    return StorageGate.rename(old_path, new_name)


def delete(paths: Iterable[str]) -> DeleteResult:
    """Delete files and folders."""
    return StorageGate.delete(paths)


__all__ = [
    # Class
    "StorageGate",
    # Health
    "initialize",
    "is_initialized",
    "get_health_status",
    # Queries
    "list_tree",
    "list_folder",
    "find_node",
    # Mutations
    "create_folder",
    "rename",
    "delete",
    # Models
    "Node",
    "NodeType",
    "StoredFile",
    "FolderCreated",
    "RenameResult",
    "DeleteResult",
    "DeleteError",
    # Errors
    "StorageError",
    "InvalidPath",
    "InvalidName",
    "AlreadyExists",
    "NotFound",
    "PayloadTooLarge",
    "StorageFailure",
]
