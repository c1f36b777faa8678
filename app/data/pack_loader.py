"""
Turn a candidate path under the packs directory into a Pack record.

Directories only count as packs when they carry a pack.mcmeta manifest at
their top level. Archives count whenever they end in .zip; their manifest is
optional. Manifest metadata is best effort: anything unreadable or
malformed falls back to the defaults instead of failing the load.
"""
from __future__ import annotations

import json
import logging
import math
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from app.domain.fingerprint import fingerprint_file, fingerprint_tree, tree_size
from app.domain.models import (
    ARCHIVE_EXTENSION,
    DEFAULT_PACK_FORMAT,
    MANIFEST_FILE_NAME,
    Pack,
    PackInfo,
    PackKind,
    default_description,
)

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> None:
    # NaN and Infinity are not JSON; json.loads accepts them by default.
    raise ValueError(f"Invalid JSON constant {name}")


def parse_pack_manifest(content: Union[str, bytes]) -> Optional[PackInfo]:
    """
    Parse the contents of a pack.mcmeta file.

    Returns None when the document is not JSON or has no `pack` object;
    callers treat that the same as a missing manifest.
    """
    try:
        data = json.loads(content, parse_constant=_reject_constant)
    except (ValueError, TypeError):
        return None

    if not isinstance(data, dict):
        return None
    pack = data.get("pack")
    if not isinstance(pack, dict):
        return None

    description = pack.get("description")
    if not isinstance(description, str):
        description = ""

    pack_format = pack.get("pack_format")
    # bool is an int subclass but never a valid format number
    if (
        isinstance(pack_format, (int, float))
        and not isinstance(pack_format, bool)
        and math.isfinite(pack_format)
    ):
        pack_format = int(pack_format)
    else:
        pack_format = DEFAULT_PACK_FORMAT

    return PackInfo(description=description, pack_format=pack_format)


def is_pack_directory(path: Path) -> bool:
    return (Path(path) / MANIFEST_FILE_NAME).exists()


def is_archive_name(filename: str) -> bool:
    return filename.endswith(ARCHIVE_EXTENSION)


def _read_archive_manifest(archive_path: Path) -> Optional[bytes]:
    """
    Return the raw top-level pack.mcmeta from an archive, if it has one.

    A corrupt archive is treated as having no manifest; the caller still
    fingerprints the file, so genuine I/O errors surface there.
    """
    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            for info in zf.infolist():
                if info.filename == MANIFEST_FILE_NAME:
                    with zf.open(info, "r") as f:
                        return f.read()
    except (zipfile.BadZipFile, OSError, RuntimeError) as e:
        logger.debug(f"Could not read manifest from {archive_path}: {e}")
    return None


def load_archive_pack(archive_path: Path) -> Pack:
    archive_path = Path(archive_path).absolute()
    st = archive_path.stat()

    name = archive_path.name[: -len(ARCHIVE_EXTENSION)]
    info = None
    raw = _read_archive_manifest(archive_path)
    if raw is not None:
        info = parse_pack_manifest(raw)

    return Pack(
        name=name,
        source_path=archive_path,
        description=info.description if info else default_description(name),
        pack_format=info.pack_format if info else DEFAULT_PACK_FORMAT,
        size=st.st_size,
        hash=fingerprint_file(archive_path),
        last_modified=datetime.fromtimestamp(st.st_mtime),
        kind=PackKind.ARCHIVE,
    )


def load_directory_pack(dir_path: Path) -> Pack:
    dir_path = Path(dir_path).absolute()
    name = dir_path.name

    info = None
    manifest_path = dir_path / MANIFEST_FILE_NAME
    if manifest_path.exists():
        info = parse_pack_manifest(manifest_path.read_bytes())

    size = tree_size(dir_path)
    digest = fingerprint_tree(dir_path)
    st = dir_path.stat()

    return Pack(
        name=name,
        source_path=dir_path,
        description=info.description if info else default_description(name),
        pack_format=info.pack_format if info else DEFAULT_PACK_FORMAT,
        size=size,
        hash=digest,
        last_modified=datetime.fromtimestamp(st.st_mtime),
        kind=PackKind.DIRECTORY,
    )


def load_candidate(path: Path, is_directory: bool) -> Optional[Pack]:
    """
    Load a single candidate.

    Returns None when the path is not a pack at all (directory without a
    manifest, file without the archive extension). OSError from reading the
    manifest, walking the tree or statting the path is raised to the caller.
    """
    path = Path(path)
    if is_directory:
        if not is_pack_directory(path):
            return None
        return load_directory_pack(path)

    if not is_archive_name(path.name):
        return None
    return load_archive_pack(path)
