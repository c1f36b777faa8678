"""
Build a complete PackIndex from the packs directory.
"""
from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict

from app.data.pack_loader import is_archive_name, is_pack_directory, load_candidate
from app.domain.models import Pack, PackIndex

logger = logging.getLogger(__name__)


def scan_packs(root: Path) -> PackIndex:
    """
    Crawl the packs directory once and return a fresh index.

    Order:
    1. The root itself, if it carries a manifest.
    2. Immediate children, in enumeration order: subdirectories as directory
       packs, *.zip files as archive packs.

    Later entries with the same name replace earlier ones. A candidate that
    fails to load is logged and left out; failing to list the root raises
    OSError and no index is produced.
    """
    root = Path(root).absolute()
    packs: Dict[str, Pack] = {}

    logger.info(f"Scanning resource pack directory {root}")

    def _add(path: Path, is_directory: bool, label: str) -> None:
        try:
            pack = load_candidate(path, is_directory)
        except OSError as e:
            logger.warning(f"Failed to load resource pack candidate {path}: {e}")
            return
        except (ValueError, ArithmeticError) as e:
            logger.error(f"Invalid resource pack candidate {path}: {e}", exc_info=True)
            return
        if pack is None:
            return
        if pack.name in packs:
            logger.warning(
                f"Resource pack name '{pack.name}' is used more than once; "
                f"{path} replaces {packs[pack.name].source_path}"
            )
        packs[pack.name] = pack
        logger.info(f"Found {label} resource pack: {pack.name}")

    if is_pack_directory(root):
        _add(root, True, "root directory")

    with os.scandir(root) as entries:
        for entry in entries:
            entry_path = root / entry.name
            try:
                is_dir = entry.is_dir()
            except OSError as e:
                logger.warning(f"Failed to stat {entry_path}: {e}")
                continue

            if is_dir:
                if is_pack_directory(entry_path):
                    _add(entry_path, True, "directory")
            elif is_archive_name(entry.name):
                _add(entry_path, False, "archive")

    logger.info(f"Scan complete: {len(packs)} resource pack(s)")
    return PackIndex(packs=packs, built_at=datetime.now())
