"""
StorageGate query service.

Read-only views over the tree: the whole tree, one folder's contents,
a single node, and download reference lookup.
"""

import os
from typing import List, Optional

from .errors import NotFound
from .models import Node
from .security import normalize_logical, resolve
from .tree import build_tree, stat_node


def list_tree(root: str) -> List[Node]:
    """Full ordered tree from the storage root."""
    return build_tree(resolve(root, ""))


def list_folder(root: str, logical_path: str) -> List[Node]:
    """
    Direct children of a folder, each folder child with its subtree.

    Raises:
        InvalidPath: If the path is malformed
        NotFound: If the path does not name an existing folder
    """
    absolute = resolve(root, logical_path)
    logical = normalize_logical(logical_path)
    if not os.path.isdir(absolute) or os.path.islink(absolute):
        raise NotFound("Folder not found", logical)
    return build_tree(absolute, logical)


def find_node(root: str, logical_path: str) -> Node:
    """
    Look up a single node by logical path.

    Raises:
        InvalidPath: If the path is malformed
        NotFound: If nothing exists there, or the path is the root itself
    """
    absolute = resolve(root, logical_path)
    logical = normalize_logical(logical_path)
    if not logical:
        raise NotFound("The storage root is not a node", logical)

    node = stat_node(absolute, logical)
    if node is None:
        raise NotFound("Item not found", logical)
    return node


def _find_by_name(nodes: List[Node], name: str) -> Optional[Node]:
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        if not node.is_folder and node.name == name:
            return node
        if node.children:
            stack.extend(reversed(node.children))
    return None


def locate_file(root: str, ref: str) -> str:
    """
    Resolve a download reference to the absolute path of a regular file.

    A reference is either the logical path of a file or a bare storage
    name, which is searched for anywhere in the tree (first match in
    tree order).

    Raises:
        InvalidPath: If the reference is malformed
        NotFound: If no such file exists
    """
    absolute = resolve(root, ref)
    logical = normalize_logical(ref)
    if logical and os.path.isfile(absolute) and not os.path.islink(absolute):
        return absolute

    if logical and "/" not in logical:
        match = _find_by_name(list_tree(root), logical)
        if match is not None:
            return resolve(root, match.path)

    raise NotFound("File not found", logical)
