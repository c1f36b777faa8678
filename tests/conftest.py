"""
Shared pytest fixtures for the resource pack server tests.

Provides helpers that lay out pack directories and zip archives on tmp_path.
"""

import json
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest


def manifest_json(description: str, pack_format: int) -> str:
    return json.dumps({"pack": {"description": description, "pack_format": pack_format}})


def make_directory_pack(
    parent: Path,
    name: str,
    files: Optional[Dict[str, str]] = None,
    manifest: Optional[str] = None,
) -> Path:
    """
    Create <parent>/<name>/ with the given files. `manifest` is written to
    pack.mcmeta verbatim when given.
    """
    pack_dir = parent / name
    pack_dir.mkdir(parents=True, exist_ok=True)
    if manifest is not None:
        (pack_dir / "pack.mcmeta").write_text(manifest, encoding="utf-8")
    for rel, content in (files or {}).items():
        path = pack_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return pack_dir


def make_archive_pack(
    parent: Path,
    name: str,
    files: Optional[Dict[str, str]] = None,
    manifest: Optional[str] = None,
) -> Path:
    """Create <parent>/<name>.zip with the given entries."""
    parent.mkdir(parents=True, exist_ok=True)
    archive = parent / f"{name}.zip"
    with zipfile.ZipFile(archive, "w", zipfile.ZIP_DEFLATED) as zf:
        if manifest is not None:
            zf.writestr("pack.mcmeta", manifest)
        for rel, content in (files or {}).items():
            zf.writestr(rel, content)
    return archive


@pytest.fixture
def packs_root(tmp_path):
    root = tmp_path / "resourcepacks"
    root.mkdir()
    return root


@pytest.fixture
def sample_root(packs_root):
    """
    The two-pack layout: foo.zip (format 15) and bar/ (format 9).
    """
    make_archive_pack(
        packs_root,
        "foo",
        files={"assets/minecraft/textures/block/stone.png": "stone"},
        manifest=manifest_json("Foo", 15),
    )
    make_directory_pack(
        packs_root,
        "bar",
        files={"assets/minecraft/lang/en_us.json": "{}"},
        manifest=manifest_json("Bar", 9),
    )
    return packs_root
