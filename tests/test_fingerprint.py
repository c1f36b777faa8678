"""Tests for pack fingerprints."""

import hashlib
import itertools
import os

import pytest

from app.domain.fingerprint import (
    fingerprint_entries,
    fingerprint_file,
    fingerprint_tree,
    tree_size,
)


def _set_mtime(path, mtime):
    os.utime(path, (mtime, mtime))


@pytest.fixture
def tree(tmp_path):
    root = tmp_path / "tree"
    (root / "assets" / "textures").mkdir(parents=True)
    files = {
        "pack.mcmeta": "{}",
        "assets/textures/a.png": "aaaa",
        "assets/textures/b.png": "bb",
    }
    for rel, content in files.items():
        path = root / rel
        path.write_text(content)
        _set_mtime(path, 1_700_000_000)
    return root


class TestFingerprintFile:
    def test_matches_md5_of_contents(self, tmp_path):
        path = tmp_path / "pack.zip"
        data = os.urandom(20_000)
        path.write_bytes(data)

        assert fingerprint_file(path) == hashlib.md5(data).hexdigest()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            fingerprint_file(tmp_path / "missing.zip")


class TestFingerprintTree:
    def test_is_md5_of_sorted_metadata_lines(self, tree):
        expected_lines = [
            "assets/textures/a.png:1700000000:4",
            "assets/textures/b.png:1700000000:2",
            "pack.mcmeta:1700000000:2",
        ]
        expected = hashlib.md5("\n".join(expected_lines).encode()).hexdigest()

        assert fingerprint_tree(tree) == expected

    def test_stable_across_calls(self, tree):
        assert fingerprint_tree(tree) == fingerprint_tree(tree)

    def test_independent_of_enumeration_order(self):
        entries = ["b.png:1:2", "a.png:1:4", "sub/c.png:3:1", "pack.mcmeta:5:10"]
        digests = {fingerprint_entries(list(p)) for p in itertools.permutations(entries)}

        assert len(digests) == 1

    def test_size_change_changes_digest(self, tree):
        before = fingerprint_tree(tree)
        target = tree / "assets" / "textures" / "a.png"
        target.write_text("aaaaaaaa")
        _set_mtime(target, 1_700_000_000)

        assert fingerprint_tree(tree) != before

    def test_mtime_change_changes_digest(self, tree):
        before = fingerprint_tree(tree)
        _set_mtime(tree / "pack.mcmeta", 1_700_000_100)

        assert fingerprint_tree(tree) != before

    def test_new_file_changes_digest(self, tree):
        before = fingerprint_tree(tree)
        new = tree / "extra.txt"
        new.write_text("x")
        _set_mtime(new, 1_700_000_000)

        assert fingerprint_tree(tree) != before

    def test_content_edit_with_same_size_and_mtime_is_not_detected(self, tree):
        # Only metadata is hashed for directory trees.
        before = fingerprint_tree(tree)
        target = tree / "assets" / "textures" / "a.png"
        target.write_text("zzzz")
        _set_mtime(target, 1_700_000_000)

        assert fingerprint_tree(tree) == before

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(OSError):
            fingerprint_tree(tmp_path / "nope")


def test_tree_size_sums_file_sizes(tree):
    assert tree_size(tree) == 2 + 4 + 2


def test_dangling_symlink_is_ignored(tree):
    before = fingerprint_tree(tree)
    os.symlink(tree / "missing", tree / "assets" / ".#lock")

    assert fingerprint_tree(tree) == before
    assert tree_size(tree) == 2 + 4 + 2
