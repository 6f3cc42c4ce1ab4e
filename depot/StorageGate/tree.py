"""
StorageGate tree builder.

Walks a directory with an explicit stack and produces the ordered,
nested list of Node the clients render. Listing is best-effort: an
unreadable subtree is reported empty instead of failing the request.
"""

import os
import stat as stat_mod
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from depot.shared.gate import GateLogger

from .models import Node, NodeType
from .naming import is_temp_upload


_log = GateLogger.get("StorageGate.tree")


def _sort(nodes: List[Node]) -> None:
    nodes.sort(key=Node.sort_key)


def node_from_stat(name: str, logical_path: str, st: os.stat_result) -> Optional[Node]:
    """
    Build a Node from a stat result.

    Returns None for anything that is neither a directory nor a regular file.
    """
    modified_at = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)

    if stat_mod.S_ISDIR(st.st_mode):
        return Node(
            name=name,
            type=NodeType.FOLDER,
            path=logical_path,
            size=0,
            modified_at=modified_at,
            children=[],
        )
    if stat_mod.S_ISREG(st.st_mode):
        return Node(
            name=name,
            type=NodeType.FILE,
            path=logical_path,
            size=st.st_size,
            modified_at=modified_at,
            download_ref=logical_path,
        )
    return None


def _scan(directory: str, prefix: str) -> List[Node]:
    """
    List one directory level. Subfolders come back with empty children.

    Raises:
        OSError: If the directory itself cannot be read
    """
    nodes: List[Node] = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if is_temp_upload(entry.name):
                continue
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError:
                # Vanished between listing and stat
                continue
            logical = f"{prefix}/{entry.name}" if prefix else entry.name
            node = node_from_stat(entry.name, logical, st)
            if node is not None:
                nodes.append(node)
    _sort(nodes)
    return nodes


def build_tree(root_path: str, prefix: str = "") -> List[Node]:
    """
    Build the ordered tree below a directory.

    Args:
        root_path: Absolute directory to walk
        prefix: Logical path of root_path ("" for the storage root)

    Returns:
        Ordered list of top-level Node; folders carry their subtrees
    """
    try:
        top = _scan(root_path, prefix)
    except OSError as e:
        _log.warning(f"Cannot read directory {prefix or '/'}: {e}")
        return []

    stack: List[Tuple[str, Node]] = [
        (os.path.join(root_path, node.name), node) for node in top if node.is_folder
    ]
    while stack:
        directory, folder = stack.pop()
        try:
            folder.children = _scan(directory, folder.path)
        except OSError as e:
            _log.warning(f"Skipping unreadable folder {folder.path}: {e}")
            folder.children = []
            continue
        stack.extend(
            (os.path.join(directory, child.name), child)
            for child in folder.children
            if child.is_folder
        )

    return top


def stat_node(absolute_path: str, logical_path: str) -> Optional[Node]:
    """
    Build a single Node (with subtree for folders) for an existing path.

    Returns None if the path does not exist or is not a plain file/folder.
    """
    try:
        st = os.stat(absolute_path, follow_symlinks=False)
    except OSError:
        return None

    name = logical_path.rsplit("/", 1)[-1] if logical_path else ""
    node = node_from_stat(name, logical_path, st)
    if node is not None and node.is_folder:
        node.children = build_tree(absolute_path, logical_path)
    return node
