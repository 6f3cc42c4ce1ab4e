"""
Tests for the StorageGate tree builder.
"""

import logging
import os
import pytest

from depot.StorageGate.models import NodeType
from depot.StorageGate.naming import temp_upload_name
from depot.StorageGate.tree import build_tree, stat_node


def _names(nodes):
    return [node.name for node in nodes]


class TestBuildTree:
    """Tests for build_tree()."""

    def test_empty_root(self, storage_root):
        assert build_tree(str(storage_root)) == []

    def test_nested_structure(self, sample_tree):
        """Folders carry their subtrees, files their metadata."""
        tree = build_tree(str(sample_tree))

        assert _names(tree) == ["docs", "empty", "data.json", "readme.txt"]

        docs = tree[0]
        assert docs.type == NodeType.FOLDER
        assert docs.path == "docs"
        assert docs.size == 0
        assert _names(docs.children) == ["deep", "nested.txt"]

        leaf = docs.children[0].children[0]
        assert leaf.path == "docs/deep/leaf.txt"
        assert leaf.size == 4
        assert leaf.download_ref == "docs/deep/leaf.txt"

    def test_empty_folder_has_empty_children(self, sample_tree):
        tree = build_tree(str(sample_tree))
        empty = next(node for node in tree if node.name == "empty")

        assert empty.children == []

    def test_files_have_no_children(self, sample_tree):
        readme = next(node for node in build_tree(str(sample_tree)) if node.name == "readme.txt")

        assert readme.children is None
        assert readme.size == len("Hello World")

    def test_folders_before_files_then_by_name(self, storage_root):
        """Given b.txt, A/ and a.txt the order is A, a.txt, b.txt."""
        (storage_root / "b.txt").write_text("b")
        (storage_root / "A").mkdir()
        (storage_root / "a.txt").write_text("a")

        assert _names(build_tree(str(storage_root))) == ["A", "a.txt", "b.txt"]

    def test_name_order_is_case_insensitive(self, storage_root):
        for name in ("beta.txt", "Alpha.txt", "alpha2.txt"):
            (storage_root / name).write_text("x")

        assert _names(build_tree(str(storage_root))) == ["Alpha.txt", "alpha2.txt", "beta.txt"]

    def test_prefix_applies_to_paths(self, sample_tree):
        """Walking a subfolder keeps paths relative to the storage root."""
        nodes = build_tree(str(sample_tree / "docs"), "docs")

        assert [node.path for node in nodes] == ["docs/deep", "docs/nested.txt"]

    def test_temp_uploads_hidden(self, storage_root):
        """In-flight uploads never show up."""
        (storage_root / temp_upload_name()).write_bytes(b"partial")
        (storage_root / "done.txt").write_text("x")

        assert _names(build_tree(str(storage_root))) == ["done.txt"]

    @pytest.mark.skipif(os.name == "nt", reason="'?' is not allowed in Windows names")
    def test_foreign_names_are_listed(self, storage_root):
        """Entries created outside Depot list even if Depot would refuse the name."""
        odd = storage_root / "what?"
        odd.mkdir()
        (odd / "inner.txt").write_text("x")

        tree = build_tree(str(storage_root))

        assert tree[0].children[0].path == "what?/inner.txt"

    def test_deep_nesting_does_not_recurse(self, storage_root):
        """Very deep trees build without hitting the recursion limit."""
        depth = 1200
        created = []
        current = storage_root
        try:
            for _ in range(depth):
                current = current / "d"
                try:
                    current.mkdir()
                except OSError:
                    pytest.skip("Filesystem path length limit reached")
                created.append(current)

            node = build_tree(str(storage_root))[0]
            levels = 1
            while node.children:
                node = node.children[0]
                levels += 1

            assert levels == depth
        finally:
            # rmtree recurses per level, so unwind by hand
            for path in reversed(created):
                os.rmdir(path)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinks_skipped(self, storage_root, temp_dir):
        """Symlinks are neither listed nor followed."""
        outside = temp_dir / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("secret")
        os.symlink(outside, storage_root / "link")

        assert build_tree(str(storage_root)) == []

    def test_missing_root_is_empty(self, temp_dir):
        """An unreadable root yields an empty listing."""
        assert build_tree(str(temp_dir / "missing")) == []

    @pytest.mark.skipif(
        os.name == "nt" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="Permission checks are bypassed on Windows and as root"
    )
    def test_unreadable_subtree_is_empty(self, sample_tree, caplog):
        """A subfolder that cannot be read is listed with no children."""
        locked = sample_tree / "docs"
        os.chmod(locked, 0)
        try:
            tree = build_tree(str(sample_tree))
        finally:
            os.chmod(locked, 0o755)

        docs = next(node for node in tree if node.name == "docs")
        assert docs.children == []
        assert "docs" in caplog.text

    def test_scan_error_leaves_subtree_empty(self, sample_tree, monkeypatch, caplog):
        """A folder whose listing fails is kept, empty, with a warning."""
        import depot.StorageGate.tree as tree_module

        real_scandir = os.scandir

        def scandir(path):
            if os.path.basename(path) == "docs":
                raise PermissionError(13, "Permission denied", path)
            return real_scandir(path)

        monkeypatch.setattr(tree_module.os, "scandir", scandir)

        with caplog.at_level(logging.WARNING, logger="depot"):
            tree = build_tree(str(sample_tree))

        docs = next(node for node in tree if node.name == "docs")
        assert docs.children == []
        assert [node.name for node in tree] == ["docs", "empty", "data.json", "readme.txt"]
        assert any(
            record.levelno == logging.WARNING and "docs" in record.getMessage()
            for record in caplog.records
        )


class TestStatNode:
    """Tests for stat_node()."""

    def test_file_node(self, sample_tree):
        node = stat_node(str(sample_tree / "docs" / "nested.txt"), "docs/nested.txt")

        assert node.name == "nested.txt"
        assert node.type == NodeType.FILE

    def test_folder_node_has_subtree(self, sample_tree):
        node = stat_node(str(sample_tree / "docs"), "docs")

        assert _names(node.children) == ["deep", "nested.txt"]

    def test_missing_path(self, sample_tree):
        assert stat_node(str(sample_tree / "nope"), "nope") is None


class TestNodeSerialization:
    """Tests for Node.to_dict()."""

    def test_camel_case_keys(self, sample_tree):
        tree = build_tree(str(sample_tree))
        readme = next(node for node in tree if node.name == "readme.txt").to_dict()
        docs = tree[0].to_dict()

        assert readme["type"] == "file"
        assert "modifiedAt" in readme
        assert readme["downloadRef"] == "readme.txt"
        assert "children" not in readme

        assert docs["type"] == "folder"
        assert "downloadRef" not in docs
        assert docs["children"][1]["name"] == "nested.txt"
