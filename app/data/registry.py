"""
Process-wide owner of the current pack index.

The registry is constructed once at startup and passed explicitly to the
watcher and the HTTP layer. Readers take the shared side of a
readers/writer lock; a scan walks the disk without holding it and only
takes the exclusive side to swap the finished index in.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from app.data.scanner import scan_packs
from app.domain.models import Pack, PackIndex

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """
    Shared/exclusive lock. Waiting writers block new readers so a steady
    stream of requests cannot starve an index swap.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class PackRegistry:
    """
    Holds exactly one PackIndex plus the time of the last completed scan.

    Lifecycle: construct -> rescan() once before serving -> serve and
    refresh -> close() at shutdown. Nothing is persisted.
    """

    def __init__(self, root: Path, *, clock: Callable[[], float] = time.time):
        self._root = Path(root).absolute()
        self._clock = clock
        self._index = PackIndex()
        self._last_scan_time: Optional[float] = None
        self._lock = ReadWriteLock()
        # Serializes whole scans so an older scan can never publish over a newer one.
        self._scan_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pack-rescan")

    # ----- Read side -----

    def root_directory(self) -> Path:
        return self._root

    @property
    def index(self) -> PackIndex:
        with self._lock.read():
            return self._index

    @property
    def last_scan_time(self) -> Optional[float]:
        with self._lock.read():
            return self._last_scan_time

    def get(self, name: str) -> Optional[Pack]:
        with self._lock.read():
            return self._index.packs.get(name)

    def all(self) -> List[Pack]:
        """
        Snapshot of every indexed pack, sorted by name. The list belongs to
        the caller and is unaffected by later scans.
        """
        with self._lock.read():
            index = self._index
        return [index.packs[name] for name in index.names()]

    def hash(self, name: str) -> Optional[str]:
        pack = self.get(name)
        return pack.hash if pack is not None else None

    # ----- Write side -----

    def replace(self, index: PackIndex) -> None:
        """Publish a new index and record the scan time."""
        now = self._clock()
        with self._lock.write():
            self._index = index
            self._last_scan_time = now

    def rescan(self) -> bool:
        """
        Scan the packs directory and publish the result.

        Returns False when the scan as a whole failed; the previous index is
        kept in that case.
        """
        with self._scan_lock:
            previous = self.index
            try:
                index = scan_packs(self._root)
            except OSError as e:
                logger.error(f"Resource pack scan of {self._root} failed: {e}")
                return False
            self.replace(index)

        added = sorted(set(index.packs) - set(previous.packs))
        removed = sorted(set(previous.packs) - set(index.packs))
        if added:
            logger.info(f"Resource packs added: {', '.join(added)}")
        if removed:
            logger.info(f"Resource packs removed: {', '.join(removed)}")
        return True

    def trigger_rescan(self) -> Future:
        """
        Queue a rescan on the background worker and return immediately.

        Bypasses the watcher cooldown. Scans still run one at a time.
        """
        logger.info("Manual resource pack rescan requested")
        return self._executor.submit(self._rescan_in_background)

    def _rescan_in_background(self) -> bool:
        try:
            return self.rescan()
        except Exception as e:
            logger.error(f"Background rescan failed: {e}", exc_info=True)
            return False

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
