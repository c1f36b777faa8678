"""
Content fingerprints for packs.

Archives are hashed byte for byte. Directory trees are fingerprinted from
file metadata only (relative path, mtime, size), which keeps rescans of
large trees cheap. An edit that preserves both size and mtime is therefore
not detected for directory packs.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Iterator, List, Tuple

_CHUNK_SIZE = 8192


def fingerprint_file(path: Path) -> str:
    """Return the hex MD5 digest of a file's contents."""
    h = hashlib.md5()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def iter_tree_files(root: Path) -> Iterator[Tuple[Path, os.stat_result]]:
    """
    Yield (path, stat) for every regular file below root, recursively.

    Walk errors are raised rather than skipped.
    """
    def _raise(err: OSError) -> None:
        raise err

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
        for filename in filenames:
            path = Path(dirpath) / filename
            # Skips dangling symlinks, sockets and other non-regular entries.
            if not path.is_file():
                continue
            yield path, path.stat()


def _tree_entries(root: Path) -> List[str]:
    entries = []
    for path, st in iter_tree_files(root):
        rel = path.relative_to(root).as_posix()
        entries.append(f"{rel}:{int(st.st_mtime)}:{st.st_size}")
    return entries


def fingerprint_entries(entries: List[str]) -> str:
    # Sorted so the digest does not depend on directory enumeration order.
    content = "\n".join(sorted(entries))
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def fingerprint_tree(root: Path) -> str:
    """
    Return the hex MD5 digest of a directory tree's file metadata.
    """
    return fingerprint_entries(_tree_entries(Path(root)))


def tree_size(root: Path) -> int:
    """Total size in bytes of all regular files below root."""
    return sum(st.st_size for _path, st in iter_tree_files(Path(root)))
