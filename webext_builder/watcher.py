"""Polling file system watcher used by development sessions."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

IGNORED_DIRS = frozenset({"node_modules", "__pycache__"})


class ChangeType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class FileChangeEvent:
    path: str
    change_type: ChangeType

    def absolute(self, root: Path) -> Path:
        return root / self.path


EventHandler = Callable[[FileChangeEvent], Awaitable[None]]


class PollingWatcher:
    """Detects created, updated and deleted files below ``root`` by comparing mtime snapshots.

    Hidden paths, ``node_modules`` and any directory listed in ``ignore`` are skipped.
    """

    def __init__(self, root: Path, *, poll_interval: float = 0.25, ignore: Sequence[Path] = ()) -> None:
        self.root = Path(root).resolve()
        self.poll_interval = poll_interval
        self.ignore = [Path(path).resolve() for path in ignore]
        self._handlers: List[EventHandler] = []
        self._snapshot: Optional[Dict[str, int]] = None
        self._task: Optional[asyncio.Task[None]] = None

    def add_event_handler(self, handler: EventHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def remove_event_handler(self, handler: EventHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def initialize(self) -> None:
        self._snapshot = await asyncio.to_thread(self._scan)

    async def poll_once(self) -> Dict[ChangeType, List[str]]:
        if self._snapshot is None:
            await self.initialize()
        previous = self._snapshot or {}
        current = await asyncio.to_thread(self._scan)
        self._snapshot = current

        changes: Dict[ChangeType, List[str]] = {change: [] for change in ChangeType}
        for path, mtime in current.items():
            if path not in previous:
                changes[ChangeType.CREATE].append(path)
            elif previous[path] != mtime:
                changes[ChangeType.UPDATE].append(path)
        changes[ChangeType.DELETE].extend(path for path in previous if path not in current)

        for change_type, paths in changes.items():
            for path in sorted(paths):
                await self._dispatch(FileChangeEvent(path=path, change_type=change_type))
        return changes

    async def start(self) -> None:
        if self.is_running:
            return
        await self.initialize()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            await self.poll_once()

    async def _dispatch(self, event: FileChangeEvent) -> None:
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:
                logger.exception("File change handler failed for %s", event.path)

    def _scan(self) -> Dict[str, int]:
        snapshot: Dict[str, int] = {}
        if not self.root.is_dir():
            return snapshot
        for path in self.root.rglob("*"):
            relative = path.relative_to(self.root)
            if any(part.startswith(".") or part in IGNORED_DIRS for part in relative.parts):
                continue
            if any(path == ignored or ignored in path.parents for ignored in self.ignore):
                continue
            try:
                if path.is_file():
                    snapshot[relative.as_posix()] = path.stat().st_mtime_ns
            except FileNotFoundError:
                continue
        return snapshot
