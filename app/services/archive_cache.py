"""
On-demand zip archives for directory packs.

Archive packs are served straight from disk. Directory packs are zipped
into the server's temp directory on each download request; the files are
not tracked or cleaned up here.
"""
from __future__ import annotations

import logging
import tempfile
import time
import zipfile
from pathlib import Path
from typing import Callable, Optional

from app.domain.fingerprint import iter_tree_files
from app.domain.models import Pack

logger = logging.getLogger(__name__)

TEMP_DIR_NAME = "resourcepack_server"


def default_temp_dir() -> Path:
    return Path(tempfile.gettempdir()) / TEMP_DIR_NAME


class ArchiveCache:
    def __init__(
        self,
        temp_dir: Optional[Path] = None,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.temp_dir = Path(temp_dir) if temp_dir else default_temp_dir()
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def _reserve_path(self, pack_name: str) -> Path:
        """
        Create an empty, uniquely named archive file and return its path.

        Names are <pack>_<unix ts>.zip; later requests in the same second
        get a numeric suffix.
        """
        stamp = int(self._clock())
        candidate = self.temp_dir / f"{pack_name}_{stamp}.zip"
        n = 1
        while True:
            try:
                # "x" fails if another request already claimed the name.
                candidate.open("xb").close()
                return candidate
            except FileExistsError:
                candidate = self.temp_dir / f"{pack_name}_{stamp}_{n}.zip"
                n += 1

    def build_archive(self, source_dir: Path, pack_name: str) -> Path:
        """
        Zip every regular file under source_dir, keeping relative paths.
        """
        source_dir = Path(source_dir)
        zip_path = self._reserve_path(pack_name)
        with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
            for path, _st in iter_tree_files(source_dir):
                zf.write(path, arcname=path.relative_to(source_dir).as_posix())

        logger.info(f"Created temporary archive {zip_path}")
        return zip_path

    def materialize(self, pack: Pack) -> Path:
        """
        Return a path that can be served for pack downloads.

        OSError (disk full, permissions, files vanishing mid-walk) is raised
        to the caller.
        """
        if not pack.is_directory:
            return pack.source_path
        return self.build_archive(pack.source_path, pack.name)

    def materialize_downloadable(self, pack: Pack) -> Optional[Path]:
        """
        Resolve the file to serve for a download request.

        Returns None when an archive pack's file is gone since the last scan.
        """
        served_path = self.materialize(pack)
        if not served_path.is_file():
            logger.warning(f"Resource pack file {served_path} no longer exists")
            return None
        return served_path
