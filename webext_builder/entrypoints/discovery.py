"""Entrypoint discovery: scan, classify, evaluate, filter and check for conflicts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..config import ResolvedConfig
from ..errors import ClassificationError, ConfigError
from ..schemas.options import parse_options
from .kinds import SINGLETON_KINDS
from .loader import ChainedDefinitionLoader, DefinitionLoader, FrontmatterDefinitionLoader, MappingDefinitionLoader
from .models import Entrypoint
from .naming import is_hidden, is_root_level, parse_entrypoint_path, relative_posix
from .resolver import is_active, resolve_definition

logger = logging.getLogger(__name__)


def default_loader(config: ResolvedConfig) -> DefinitionLoader:
    return ChainedDefinitionLoader(
        [
            FrontmatterDefinitionLoader(config.root),
            MappingDefinitionLoader(config.definitions),
        ]
    )


def list_entrypoint_files(entrypoints_dir: Path) -> List[Path]:
    """Every non-hidden file below ``entrypoints_dir``, sorted by relative path."""

    if not entrypoints_dir.is_dir():
        return []
    files = [
        path
        for path in entrypoints_dir.rglob("*")
        if path.is_file() and not is_hidden(relative_posix(entrypoints_dir, path))
    ]
    return sorted(files, key=lambda path: relative_posix(entrypoints_dir, path))


def find_entrypoints(config: ResolvedConfig, loader: Optional[DefinitionLoader] = None) -> List[Entrypoint]:
    """Return the active entrypoints for ``config.browser`` in discovery order."""

    loader = loader or default_loader(config)
    entrypoints: List[Entrypoint] = []
    for path in list_entrypoint_files(config.entrypoints_dir):
        try:
            parsed = parse_entrypoint_path(config.entrypoints_dir, path)
        except ClassificationError as exc:
            relative = relative_posix(config.entrypoints_dir, path)
            if is_root_level(relative):
                raise ClassificationError(exc.detail, path=config.relative(path)) from exc
            logger.debug("Skipping unrecognized file inside an entrypoint directory: %s", relative)
            continue

        rel_to_root = config.relative(path)
        definition = resolve_definition(loader.load(path, parsed.kind.name, parsed.name), config.browser)
        try:
            options = parse_options(parsed.kind.name, definition)
        except ValidationError as exc:
            raise ConfigError(f"Invalid {parsed.kind.name} definition: {exc}", path=rel_to_root) from exc

        if not is_active(config.browser, include=options.include, exclude=options.exclude, path=rel_to_root):
            logger.debug("Skipping %s: not built for %s", rel_to_root, config.browser)
            continue
        if config.filter_entrypoints is not None and parsed.name not in config.filter_entrypoints:
            logger.debug("Skipping %s: filtered out", rel_to_root)
            continue

        entrypoints.append(
            Entrypoint(
                name=parsed.name,
                kind=parsed.kind.name,
                input_path=path,
                output_dir=config.out_dir / parsed.kind.output_subdir if parsed.kind.output_subdir else config.out_dir,
                options=options,
                relative_path=parsed.relative_path,
            )
        )

    _check_conflicts(entrypoints, config)
    return entrypoints


def _check_conflicts(entrypoints: List[Entrypoint], config: ResolvedConfig) -> None:
    by_name: Dict[str, Entrypoint] = {}
    by_singleton: Dict[str, Entrypoint] = {}
    for entry in entrypoints:
        previous = by_name.get(entry.name)
        if previous is not None:
            raise ClassificationError(
                f"Multiple entrypoints named '{entry.name}' (also {config.relative(previous.input_path)})",
                path=config.relative(entry.input_path),
            )
        by_name[entry.name] = entry

        if entry.kind in SINGLETON_KINDS:
            existing = by_singleton.get(entry.kind)
            if existing is not None:
                raise ClassificationError(
                    f"Only one {entry.kind} entrypoint is allowed (also {config.relative(existing.input_path)})",
                    path=config.relative(entry.input_path),
                )
            by_singleton[entry.kind] = entry
