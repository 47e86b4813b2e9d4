"""
File system watcher that re-runs lint when catalog documents change.

This module provides:
- Watchdog-based file monitoring
- Debouncing of editor save bursts
- A blocking loop that hands batches of changed paths to a callback
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class CatalogEventHandler(FileSystemEventHandler):
    """
    Collects changed catalog paths and releases them once activity settles.

    Key behaviors:
    - Filters to Markdown documents and the TOML configuration
    - Ignores hidden directories other than .github
    - Waits DEBOUNCE_SECONDS after the last event before flushing
    """

    RELEVANT_EXTENSIONS = {".md", ".toml"}
    DEBOUNCE_SECONDS = 1.0

    def __init__(self, root: Path, on_change: Callable[[set[Path]], None]):
        super().__init__()
        self.root = root
        self.on_change = on_change
        self.pending: set[Path] = set()
        self.last_event: float | None = None
        # Observer thread records, the main loop flushes
        self._lock = threading.Lock()

    def _is_relevant(self, path: str) -> bool:
        p = Path(path)
        try:
            parts = p.relative_to(self.root).parts
        except ValueError:
            parts = p.parts

        if any(part.startswith(".") and part != ".github" for part in parts[:-1]):
            return False
        if p.name.startswith(".") and p.name != ".patterndocs.toml":
            return False

        return p.suffix.lower() in self.RELEVANT_EXTENSIONS

    def _record(self, path: str, now: float | None = None) -> None:
        if not self._is_relevant(path):
            return
        with self._lock:
            self.pending.add(Path(path))
            self.last_event = time.time() if now is None else now

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(str(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._record(str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        # A rename touches both ends; either may be the document that changed
        self._record(str(event.src_path))
        self._record(str(getattr(event, "dest_path", "")))

    def flush_pending(self, now: float | None = None) -> set[Path]:
        """Hand pending paths to the callback if the debounce window has passed."""
        now = time.time() if now is None else now
        with self._lock:
            if not self.pending or self.last_event is None:
                return set()
            if now - self.last_event < self.DEBOUNCE_SECONDS:
                return set()
            changed, self.pending = self.pending, set()
            self.last_event = None

        logger.debug("Flushing %d changed path(s)", len(changed))
        self.on_change(changed)
        return changed


def watch_catalog(
    root: Path,
    on_change: Callable[[set[Path]], None],
    recursive: bool = True,
) -> tuple[Observer, CatalogEventHandler]:
    """
    Start watching a catalog for file system events.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = CatalogEventHandler(root=root, on_change=on_change)

    observer = Observer()
    observer.schedule(handler, str(root), recursive=recursive)
    observer.start()

    return observer, handler


def run_watch_loop(root: Path, on_change: Callable[[set[Path]], None]) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function that watches for events and flushes
    pending changes periodically.
    """
    observer, handler = watch_catalog(root, on_change)

    try:
        while True:
            time.sleep(0.5)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
