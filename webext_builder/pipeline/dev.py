"""Development sessions: an initial full pass followed by incremental passes on file changes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Set

from ..building.bundler import Bundler
from ..building.models import BuildOutput
from ..config import DevServerInfo, ResolvedConfig
from ..entrypoints.loader import DefinitionLoader
from ..errors import ConfigError, WebextBuilderError
from ..watcher import FileChangeEvent, PollingWatcher
from .orchestrator import Pipeline

logger = logging.getLogger(__name__)


class DevSession:
    """Owns the pipeline of a ``serve`` command.

    Triggers arriving while a pass is running are merged into a single follow-up pass, so at most
    one pass runs at a time. A failed pass is logged and the last successful output is kept.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        *,
        bundler: Optional[Bundler] = None,
        loader: Optional[DefinitionLoader] = None,
    ) -> None:
        if not config.is_dev:
            raise ConfigError("Development sessions require the 'serve' command")
        if config.server is None:
            config = replace(config, server=DevServerInfo(hostname=config.dev.hostname, port=config.dev.port))
        self.config = config
        self.pipeline = Pipeline(config, bundler=bundler, loader=loader)
        self.output: Optional[BuildOutput] = None
        self.passes = 0
        self.errors: List[Exception] = []
        self._pending: Set[Path] = set()
        self._drain_task: Optional[asyncio.Task[None]] = None
        self._watcher: Optional[PollingWatcher] = None

    async def start(self) -> BuildOutput:
        """Run the initial full pass. Errors here are fatal."""

        self.output = await self.pipeline.run()
        self.passes += 1
        logger.info("Dev server ready at %s", self.config.server.origin)  # type: ignore[union-attr]
        return self.output

    def trigger(self, paths: Iterable[Path]) -> None:
        """Queue changed files for the next incremental pass."""

        self._pending.update(Path(path).resolve() for path in paths)
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def wait_idle(self) -> None:
        while self._drain_task is not None and not self._drain_task.done():
            await self._drain_task

    async def _drain(self) -> None:
        while self._pending:
            batch = sorted(self._pending)
            self._pending.clear()
            logger.info("Rebuilding after %d changed file(s)", len(batch))
            try:
                self.output = await self.pipeline.run(previous=self.output, changed=batch)
            except WebextBuilderError as exc:
                logger.error("Rebuild failed, keeping previous output: %s", exc)
                self.errors.append(exc)
                continue
            except Exception as exc:
                logger.exception("Rebuild failed unexpectedly, keeping previous output")
                self.errors.append(exc)
                continue
            self.passes += 1

    async def _on_change(self, event: FileChangeEvent) -> None:
        logger.debug("%s %s", event.change_type.value, event.path)
        self.trigger([event.absolute(self.config.root)])

    async def serve_forever(self) -> None:
        """Build once, then rebuild whenever a file below the project root changes."""

        await self.start()
        self._watcher = PollingWatcher(
            self.config.root,
            poll_interval=self.config.dev.poll_interval,
            ignore=[self.config.out_base_dir],
        )
        self._watcher.add_event_handler(self._on_change)
        await self._watcher.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.close()

    async def close(self) -> None:
        if self._watcher is not None:
            await self._watcher.stop()
            self._watcher = None
        await self.wait_idle()
