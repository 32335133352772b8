"""Naming convention parser: maps a file below the entrypoints directory to a name and kind."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..errors import ClassificationError
from .kinds import EntrypointKind, match_kind

_NAME_SPLIT_RE = re.compile(r"[./\\]")


@dataclass(frozen=True, slots=True)
class ParsedEntrypointPath:
    name: str
    kind: EntrypointKind
    relative_path: str


def relative_posix(entrypoints_dir: Path, path: Path) -> str:
    return Path(path).relative_to(entrypoints_dir).as_posix()


def is_hidden(relative_path: str) -> bool:
    """True when any path segment starts with a dot."""

    return any(part.startswith(".") for part in PurePosixPath(relative_path).parts)


def get_entrypoint_name(entrypoints_dir: Path, input_path: Path) -> str:
    """Everything up to the first ``.`` or path separator of the relative path."""

    relative = relative_posix(entrypoints_dir, input_path)
    return _NAME_SPLIT_RE.split(relative, maxsplit=1)[0]


def parse_entrypoint_path(entrypoints_dir: Path, input_path: Path) -> ParsedEntrypointPath:
    """Classify ``input_path``.

    Raises :class:`ClassificationError` when no naming convention matches. Callers decide
    whether that is fatal: see :func:`is_root_level`.
    """

    relative = relative_posix(entrypoints_dir, input_path)
    kind = match_kind(relative)
    if kind is None:
        raise ClassificationError("No entrypoint type matches this file name", path=relative)
    return ParsedEntrypointPath(
        name=get_entrypoint_name(entrypoints_dir, input_path),
        kind=kind,
        relative_path=relative,
    )


def is_root_level(relative_path: str) -> bool:
    return "/" not in relative_path
