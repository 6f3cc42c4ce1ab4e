"""
StorageGate file operations.

Provides the structural mutations (create folder, place upload, rename,
delete) with path validation and collision checks. The final filesystem
call (mkdir, exclusive create, rename) is the authority on collisions;
the earlier existence checks only produce friendlier errors.
"""

import os
import shutil
from typing import BinaryIO, Iterable, Optional

from depot.shared.gate import GateLogger

from .errors import (
    AlreadyExists,
    InvalidPath,
    NotFound,
    PayloadTooLarge,
    StorageError,
    StorageFailure,
)
from .models import DeleteError, DeleteResult, FolderCreated, RenameResult, StoredFile
from .naming import (
    generate_storage_name,
    guess_mimetype,
    sanitize_segment_name,
    temp_upload_name,
)
from .security import join_logical, normalize_logical, parent_logical, resolve

_log = GateLogger.get("StorageGate.operations")

DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024
DEFAULT_CHUNK_SIZE = 1024 * 1024


def _failure(operation: str, logical_path: str, error: OSError) -> StorageFailure:
    """Log an OS error with context and wrap it for the client."""
    _log.error(f"{operation} failed for '{logical_path or '/'}': {error}")
    return StorageFailure(f"Failed to {operation}", logical_path)


def _discard(path: str, is_dir: bool = False) -> None:
    """Remove a temp file or placeholder left by a failed operation."""
    try:
        if is_dir:
            os.rmdir(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        _log.warning(f"Could not remove leftover {os.path.basename(path)}: {e}")


def _ensure_folder(absolute: str, logical: str) -> None:
    """Create a folder and its missing ancestors."""
    if os.path.lexists(absolute) and not os.path.isdir(absolute):
        raise InvalidPath("Target is not a folder", logical)
    try:
        os.makedirs(absolute, exist_ok=True)
    except (FileExistsError, NotADirectoryError):
        raise InvalidPath("Target is not a folder", logical)
    except OSError as e:
        raise _failure("create folder", logical, e)


def create_folder(root: str, parent_path: str, raw_name: str) -> FolderCreated:
    """
    Create a folder.

    Args:
        root: Absolute storage root
        parent_path: Logical path of the parent (created if missing)
        raw_name: Name typed by the user

    Returns:
        FolderCreated with the new logical path

    Raises:
        InvalidPath, InvalidName, AlreadyExists, StorageFailure
    """
    parent_abs = resolve(root, parent_path)
    parent = normalize_logical(parent_path)
    name = sanitize_segment_name(raw_name)

    target = os.path.join(parent_abs, name)
    target_logical = join_logical(parent, name)

    if os.path.lexists(target):
        raise AlreadyExists("Folder already exists", target_logical)

    _ensure_folder(parent_abs, parent)

    try:
        os.mkdir(target)
    except FileExistsError:
        raise AlreadyExists("Folder already exists", target_logical)
    except OSError as e:
        raise _failure("create folder", target_logical, e)

    _log.info(f"Created folder '{target_logical}'")
    return FolderCreated(name=name, path=target_logical)


def place_upload(
    root: str,
    folder_path: str,
    original_name: str,
    stream: BinaryIO,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    declared_type: Optional[str] = None,
    declared_size: Optional[int] = None,
) -> StoredFile:
    """
    Persist an uploaded stream under a generated storage name.

    The stream is copied chunk by chunk into a hidden temp file which is
    renamed into place once complete, so listings never show a partial
    upload.

    Args:
        root: Absolute storage root
        folder_path: Logical destination folder (created if missing)
        original_name: Filename declared by the client
        stream: Readable binary stream
        max_bytes: Per-file size limit
        chunk_size: Bytes per read
        declared_type: Content type declared by the client
        declared_size: Size declared by the client, if known

    Returns:
        StoredFile metadata

    Raises:
        InvalidPath, PayloadTooLarge, StorageFailure
    """
    folder_abs = resolve(root, folder_path)
    folder = normalize_logical(folder_path)

    if declared_size is not None and declared_size > max_bytes:
        raise PayloadTooLarge(max_bytes, folder)

    _ensure_folder(folder_abs, folder)

    storage_name = generate_storage_name(original_name)
    target = os.path.join(folder_abs, storage_name)
    target_logical = join_logical(folder, storage_name)
    temp_path = os.path.join(folder_abs, temp_upload_name())

    written = 0
    completed = False
    try:
        with open(temp_path, "xb") as out:
            while True:
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise PayloadTooLarge(max_bytes, target_logical)
                out.write(chunk)
        os.replace(temp_path, target)
        completed = True
    except OSError as e:
        raise _failure("store upload", target_logical, e)
    finally:
        if not completed:
            _discard(temp_path)

    _log.info(f"Stored upload '{original_name}' as '{target_logical}' ({written} bytes)")
    return StoredFile(
        original_name=original_name or storage_name,
        storage_ref=storage_name,
        path=target_logical,
        size=written,
        mimetype=guess_mimetype(original_name, declared_type),
    )


def _reserve(target: str, is_dir: bool) -> None:
    """Atomically claim a name; FileExistsError if it is taken."""
    if is_dir:
        os.mkdir(target)
    else:
        os.close(os.open(target, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644))


def _link_rename(old_abs: str, target: str) -> bool:
    """
    Rename a regular file by hard-linking it under the new name.

    link() fails if the name is taken, so the target only ever appears
    with its full content. Returns False when the filesystem cannot
    hard-link, leaving both names untouched.
    """
    try:
        os.link(old_abs, target)
    except (FileExistsError, FileNotFoundError):
        raise
    except OSError as e:
        _log.debug(f"Hard link unavailable, using placeholder rename: {e}")
        return False

    try:
        os.unlink(old_abs)
    except OSError:
        # includes a racing rename or delete that released the source first
        _discard(target)
        raise
    return True


def rename(root: str, old_path: str, new_raw_name: str) -> RenameResult:
    """
    Rename a file or folder within its parent.

    Regular files are hard-linked under the new name and then unlinked
    from the old one. Folders (and files on filesystems without hard
    links) first claim the new name with an exclusive create, a
    placeholder file or an empty folder, and are then moved over it.
    Either way two racing renames onto the same name cannot both succeed.

    Raises:
        InvalidPath, InvalidName, NotFound, AlreadyExists, StorageFailure
    """
    old_abs = resolve(root, old_path)
    old_logical = normalize_logical(old_path)
    if not old_logical:
        raise InvalidPath("The storage root cannot be renamed", old_logical)
    if not os.path.lexists(old_abs):
        raise NotFound("Item not found", old_logical)

    name = sanitize_segment_name(new_raw_name)
    target = os.path.join(os.path.dirname(old_abs), name)
    new_logical = join_logical(parent_logical(old_logical), name)

    if name == os.path.basename(old_abs) or os.path.lexists(target):
        raise AlreadyExists("An item with this name already exists", new_logical)

    is_link = os.path.islink(old_abs)
    is_dir = os.path.isdir(old_abs) and not is_link

    if not is_dir and not is_link:
        try:
            if _link_rename(old_abs, target):
                _log.info(f"Renamed '{old_logical}' to '{new_logical}'")
                return RenameResult(old_path=old_logical, new_path=new_logical)
        except FileExistsError:
            raise AlreadyExists("An item with this name already exists", new_logical)
        except FileNotFoundError:
            raise NotFound("Item not found", old_logical)
        except OSError as e:
            raise _failure("rename item", old_logical, e)

    try:
        _reserve(target, is_dir)
    except FileExistsError:
        raise AlreadyExists("An item with this name already exists", new_logical)
    except OSError as e:
        raise _failure("rename item", old_logical, e)

    try:
        os.replace(old_abs, target)
    except FileNotFoundError:
        _discard(target, is_dir)
        raise NotFound("Item not found", old_logical)
    except OSError as e:
        _discard(target, is_dir)
        raise _failure("rename item", old_logical, e)

    _log.info(f"Renamed '{old_logical}' to '{new_logical}'")
    return RenameResult(old_path=old_logical, new_path=new_logical)


def _remove(absolute: str) -> None:
    if os.path.isdir(absolute) and not os.path.islink(absolute):
        shutil.rmtree(absolute)
    else:
        os.remove(absolute)


def delete_paths(root: str, paths: Iterable[str]) -> DeleteResult:
    """
    Delete a batch of files and folders (folders recursively).

    Absent paths are skipped silently; an invalid path or a failing
    removal is recorded in ``errors`` without aborting the rest of the
    batch.

    Returns:
        DeleteResult with the items that existed and were removed
    """
    result = DeleteResult()
    seen = set()

    for item in paths:
        try:
            absolute = resolve(root, item)
            logical = normalize_logical(item)
            if not logical:
                raise InvalidPath("The storage root cannot be deleted", logical)
        except StorageError as e:
            result.errors.append(DeleteError(path=str(item), error=e.message))
            continue

        if logical in seen:
            continue
        seen.add(logical)

        if not os.path.lexists(absolute):
            continue

        try:
            _remove(absolute)
        except FileNotFoundError:
            # Removed concurrently
            continue
        except OSError as e:
            failure = _failure("delete item", logical, e)
            result.errors.append(DeleteError(path=item, error=failure.message))
            continue

        _log.info(f"Deleted '{logical}'")
        result.deleted_items.append(item)

    return result
