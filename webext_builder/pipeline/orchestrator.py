"""Pipeline orchestration: discovery, grouping, building, manifest assembly and writing."""

from __future__ import annotations

import logging
import shutil
import time
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..building.bundler import Bundler, build_bundler
from ..building.grouping import group_entrypoints
from ..building.models import BuildOutput, BuildStepOutput, Chunk
from ..building.public import copy_public_directory
from ..config import ResolvedConfig
from ..entrypoints.discovery import find_entrypoints
from ..entrypoints.loader import DefinitionLoader
from ..entrypoints.models import Entrypoint, EntrypointGroup, group_key, group_label, group_members
from ..errors import BrowserCompatibilityWarning, BuildError, WebextBuilderError
from ..manifest.assembler import ManifestAssembler
from ..manifest.writer import MANIFEST_FILENAME, write_manifest

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    BUILDING = "building"
    ASSEMBLING = "assembling"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class Pipeline:
    """Runs build passes for one resolved configuration.

    A pass owns its :class:`BuildOutput` until it returns. Passing the previous output and the
    set of changed files lets unaffected groups keep their previous build steps.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        *,
        bundler: Optional[Bundler] = None,
        loader: Optional[DefinitionLoader] = None,
    ) -> None:
        self.config = config
        self.bundler = bundler or build_bundler(config.bundler)
        self.loader = loader
        self.state = PipelineState.IDLE
        self.entrypoints: List[Entrypoint] = []
        self.warnings: List[BrowserCompatibilityWarning] = []
        self.failed_groups: List[Tuple[str, ...]] = []

    async def run(
        self,
        *,
        previous: Optional[BuildOutput] = None,
        changed: Optional[Iterable[Path]] = None,
    ) -> BuildOutput:
        config = self.config
        verb = "Pre-rendering" if config.is_dev else "Building"
        logger.info("%s %s for %s with %s", verb, config.target, config.mode, self.bundler.name)
        started = time.perf_counter()
        try:
            self._transition(PipelineState.DISCOVERING)
            if not config.is_dev:
                shutil.rmtree(config.out_dir, ignore_errors=True)
            config.out_dir.mkdir(parents=True, exist_ok=True)
            entrypoints = find_entrypoints(config, self.loader)
            groups = group_entrypoints(entrypoints)

            self._transition(PipelineState.BUILDING)
            output = BuildOutput()
            output.steps = await self._build_groups(groups, previous, changed)
            output.public_assets = copy_public_directory(config)

            self._transition(PipelineState.ASSEMBLING)
            assembler = ManifestAssembler(config)
            manifest = assembler.assemble(entrypoints, output.steps)

            self._transition(PipelineState.WRITING)
            write_manifest(manifest, config.out_dir, pretty=config.is_dev)
            output.manifest = manifest
            output.public_assets.insert(0, Chunk(file_name=MANIFEST_FILENAME, kind="asset"))
        except Exception:
            self._transition(PipelineState.FAILED)
            raise

        self.entrypoints = entrypoints
        self.warnings = assembler.warnings
        self._transition(PipelineState.DONE)
        logger.info("Built extension in %.0f ms", (time.perf_counter() - started) * 1000)
        for file_name, size in build_summary(output, config.out_dir):
            logger.info("  %s  %s", file_name, _format_size(size))
        return output

    async def _build_groups(
        self,
        groups: List[EntrypointGroup],
        previous: Optional[BuildOutput],
        changed: Optional[Iterable[Path]],
    ) -> List[BuildStepOutput]:
        retained: Dict[Tuple[str, ...], BuildStepOutput] = {}
        affected: Optional[Set[Tuple[str, ...]]] = None
        if previous is not None and changed is not None:
            retained = {step.key: step for step in previous.steps}
            affected = affected_group_keys(groups, changed, self.config)

        self.failed_groups = []
        steps: List[BuildStepOutput] = []
        total = len(groups)
        for index, group in enumerate(groups, start=1):
            key = group_key(group)
            if affected is not None and key not in affected and key in retained:
                logger.debug("[%d/%d] %s unchanged, reusing previous output", index, total, group_label(group))
                steps.append(retained[key])
                continue

            logger.info("[%d/%d] %s", index, total, group_label(group))
            try:
                chunks = await self._build_one(group)
            except BuildError as exc:
                if not self.config.is_dev:
                    raise
                logger.error("Failed to build %s, skipping: %s", group_label(group), exc)
                self.failed_groups.append(key)
                continue
            steps.append(BuildStepOutput(group=group, chunks=chunks))
        return steps

    async def _build_one(self, group: EntrypointGroup) -> List[Chunk]:
        try:
            return list(await self.bundler.build(group, self.config))
        except WebextBuilderError:
            raise
        except Exception as exc:
            paths = ", ".join(self.config.relative(entry.input_path) for entry in group_members(group))
            raise BuildError(f"{type(exc).__name__}: {exc}", path=paths) from exc

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Pipeline %s -> %s", self.state.value, state.value)
        self.state = state


def affected_group_keys(
    groups: List[EntrypointGroup],
    changed: Iterable[Path],
    config: ResolvedConfig,
) -> Set[Tuple[str, ...]]:
    """Keys of the groups that must be rebuilt for the given changed files.

    A change that cannot be attributed to a single entrypoint (shared modules, config) marks
    every group as affected. Public files and package metadata never require a rebuild.
    """

    all_keys = {group_key(group) for group in groups}
    owners: Dict[Tuple[str, ...], List[Entrypoint]] = {group_key(group): group_members(group) for group in groups}
    affected: Set[Tuple[str, ...]] = set()
    for raw_path in changed:
        path = Path(raw_path).resolve()
        if _is_within(path, config.public_dir) or path == config.root / "package.json":
            continue
        matched = False
        for key, members in owners.items():
            for entry in members:
                source_dir = entry.source_dir()
                if path == entry.input_path or (source_dir is not None and _is_within(path, source_dir)):
                    affected.add(key)
                    matched = True
        if not matched:
            return all_keys
    return affected


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True


def build_summary(output: BuildOutput, out_dir: Path) -> List[Tuple[str, int]]:
    """Written files with their sizes in bytes, sorted by path."""

    summary: List[Tuple[str, int]] = []
    for file_name in sorted(set(output.file_names())):
        path = out_dir / file_name
        if path.exists():
            summary.append((file_name, path.stat().st_size))
    return summary


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.2f} kB"
