"""Watch mode: filesystem events, per-file debounce, and clean shutdown."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from md2pdf.converter.paths import compile_patterns, path_matches, watch_roots

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Path], Awaitable[Any]]


class _ChangeHandler(FileSystemEventHandler):
    """Forwards file create/modify/move events from the observer thread."""

    def __init__(self, session: WatchSession) -> None:
        super().__init__()
        self._session = session

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._forward(event, event.dest_path)

    def _forward(self, event: FileSystemEvent, path: str | bytes) -> None:
        if event.is_directory:
            return
        self._session.dispatch(os.fsdecode(path))


class WatchSession:
    """Debounced re-conversion of files matching a set of glob patterns.

    Each change to a file restarts that file's timer; the callback runs once
    the file has been quiet for ``debounce_ms``. Timers and callbacks live on
    the asyncio loop that called ``open()``; watchdog events are handed over
    from the observer thread with ``call_soon_threadsafe``.

    After ``close()`` is called, no timer fires and no callback starts, even
    for events that were already queued.
    """

    def __init__(
        self,
        patterns: Sequence[str],
        on_change: ChangeCallback,
        debounce_ms: int = 500,
        ignore: Sequence[str] = (),
    ) -> None:
        if debounce_ms < 0:
            raise ValueError("debounce_ms must not be negative")
        self.patterns = list(patterns)
        self.debounce_ms = debounce_ms
        self._on_change = on_change
        self._ignore = list(ignore)
        self._compiled = compile_patterns(self.patterns)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Observer | None = None
        self._timers: dict[Path, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> set[Path]:
        """Files with a debounce timer still waiting to fire."""
        return set(self._timers)

    def open(self) -> WatchSession:
        """Start the OS-level watches. Must run inside the event loop."""
        if self._closed:
            raise RuntimeError("WatchSession is closed")
        if self._observer is not None:
            return self

        self._loop = asyncio.get_running_loop()
        handler = _ChangeHandler(self)
        observer = Observer()
        for directory, recursive in watch_roots(self.patterns):
            observer.schedule(handler, str(directory), recursive=recursive)
        observer.start()
        self._observer = observer
        logger.info("Watching for changes: %s", ", ".join(self.patterns))
        return self

    def dispatch(self, path: str) -> None:
        """Thread-safe entry point for raw filesystem events."""
        loop = self._loop
        if self._closed or loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._on_event, Path(path))
        except RuntimeError:
            logger.debug("Event loop closed, dropping event for %s", path)

    def matches(self, path: Path) -> bool:
        """Pattern and ignore check for one path; never scans directories."""
        return path_matches(path.resolve(), self._compiled, self._ignore)

    def notify(self, path: str | Path) -> None:
        """Record a change to *path* and (re)start its debounce timer."""
        if self._closed:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        key = Path(path)
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        self._timers[key] = self._loop.call_later(
            self.debounce_ms / 1000, self._fire, key
        )

    async def close(self) -> None:
        """Cancel pending timers, release the observer, and wait for running conversions."""
        if self._closed:
            return
        self._closed = True

        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        if self._observer is not None:
            observer, self._observer = self._observer, None
            observer.stop()
            await asyncio.to_thread(observer.join, 5)

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        logger.info("Stopped watching")

    def _on_event(self, path: Path) -> None:
        if self._closed or not self.matches(path):
            return
        self.notify(path.resolve())

    def _fire(self, path: Path) -> None:
        self._timers.pop(path, None)
        if self._closed or self._loop is None:
            return
        logger.info("File changed: %s", path.name)
        task = self._loop.create_task(self._run(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, path: Path) -> None:
        try:
            await self._on_change(path)
        except Exception:
            logger.exception("Conversion after change failed for %s", path)
