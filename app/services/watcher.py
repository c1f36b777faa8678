"""
Filesystem watcher that keeps the pack registry in step with the disk.

watchdog delivers events on its observer thread; the handler here only
queues them. A single consumer thread turns bursts of events into one
rescan:

* Cooling: the last scan finished less than `scan_cooldown` seconds ago,
  so the event is dropped.
* Idle: wait `settle_delay` seconds for related events (for example a
  multi-file copy) to land, drop everything queued meanwhile, then rescan.

Manual rescans go through PackRegistry.trigger_rescan and never consult the
cooldown.
"""
from __future__ import annotations

import logging
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.data.registry import PackRegistry

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.25


class _PackEventHandler(FileSystemEventHandler):
    def __init__(self, watcher: "ChangeWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed_no_write"):
            return
        self.watcher.notify(event.src_path)


class ChangeWatcher:
    def __init__(
        self,
        registry: PackRegistry,
        *,
        settle_delay: float = 0.5,
        scan_cooldown: float = 2.0,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.settle_delay = settle_delay
        self.scan_cooldown = scan_cooldown
        self._clock = clock
        self._events: "queue.Queue[str]" = queue.Queue()
        self._stop = threading.Event()
        self._observer: Optional[Observer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def notify(self, path: str) -> None:
        """Record a change notification for the consumer thread."""
        self._events.put(path)

    def in_cooldown(self) -> bool:
        last = self.registry.last_scan_time
        if last is None:
            return False
        return self._clock() - last < self.scan_cooldown

    def handle_change(self) -> bool:
        """
        React to one change notification. Returns True when a scan ran.
        """
        if self.in_cooldown():
            logger.debug("Change ignored, last scan is within the cooldown window")
            return False

        # Stop requests interrupt the settle delay.
        if self._stop.wait(self.settle_delay):
            return False

        self._drain()
        logger.info("Pack directory changed, rescanning")
        return self.registry.rescan()

    def _drain(self) -> int:
        drained = 0
        while True:
            try:
                self._events.get_nowait()
            except queue.Empty:
                return drained
            drained += 1

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                path = self._events.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            logger.debug(f"Filesystem event for {path}")
            try:
                self.handle_change()
            except Exception as e:
                logger.error(f"Rescan after filesystem change failed: {e}", exc_info=True)

    def start(self) -> bool:
        """
        Subscribe to the packs directory.

        Failures are logged and leave the server in manual-rescan-only mode.
        """
        if self.is_running:
            return True

        root = Path(self.registry.root_directory())
        if not root.is_dir():
            logger.error(f"Failed to start file monitoring: {root} is not a directory")
            return False

        observer = Observer()
        try:
            observer.schedule(_PackEventHandler(self), str(root), recursive=True)
            observer.start()
        except (OSError, RuntimeError) as e:
            logger.error(f"Failed to start file monitoring for {root}: {e}")
            return False

        self._observer = observer
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="pack-watcher", daemon=True
        )
        self._thread.start()
        logger.info(f"File monitoring started for {root}")
        return True

    def stop(self, timeout: float = 5.0) -> None:
        """
        Close the subscription and stop the consumer thread.

        An in-flight scan gets `timeout` seconds to finish; it is not
        interrupted beyond that.
        """
        self._stop.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
            self._observer = None
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Watcher thread did not stop within the grace period")
            self._thread = None
        logger.info("File monitoring stopped")
