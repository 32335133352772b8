"""Entrypoint data model and bundle path helpers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

from ..schemas.options import BaseEntrypointOptions
from .kinds import EntrypointKind, get_kind


@dataclass(frozen=True, slots=True)
class Entrypoint:
    """One logical build target discovered from the entrypoints directory."""

    name: str
    kind: str
    input_path: Path
    output_dir: Path
    options: BaseEntrypointOptions
    relative_path: str = ""

    @property
    def spec(self) -> EntrypointKind:
        return get_kind(self.kind)

    @property
    def is_css(self) -> bool:
        return self.spec.strategy == "css"

    def output_file(self, ext: str) -> Path:
        return self.output_dir / f"{self.name}{ext}"

    def bundle_path(self, out_dir: Path, ext: str | None = None) -> str:
        """Output path relative to ``out_dir``, as written in the manifest."""

        return self.output_file(ext or self.spec.extension).relative_to(out_dir).as_posix()

    def source_dir(self) -> Path | None:
        """Directory owned by a directory-style entrypoint (``name.kind/index.ext``)."""

        if self.input_path.stem == "index" and "/" in self.relative_path:
            return self.input_path.parent
        return None


EntrypointGroup = Union[Entrypoint, Tuple[Entrypoint, ...]]


def group_members(group: EntrypointGroup) -> List[Entrypoint]:
    return list(group) if isinstance(group, tuple) else [group]


def group_key(group: EntrypointGroup) -> Tuple[str, ...]:
    """Stable identity of a group across passes: its members' input paths."""

    return tuple(entry.input_path.as_posix() for entry in group_members(group))


def group_label(group: EntrypointGroup) -> str:
    return ", ".join(entry.name for entry in group_members(group))
