"""Build output data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal

from ..entrypoints.models import EntrypointGroup, group_key

ChunkKind = Literal["script", "asset"]


@dataclass(frozen=True, slots=True)
class Chunk:
    file_name: str
    kind: ChunkKind = "script"

    def to_dict(self) -> Dict[str, object]:
        return {"fileName": self.file_name, "kind": self.kind}


@dataclass(slots=True)
class BuildStepOutput:
    group: EntrypointGroup
    chunks: List[Chunk] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, ...]:
        return group_key(self.group)


@dataclass(slots=True)
class BuildOutput:
    manifest: Dict[str, Any] = field(default_factory=dict)
    public_assets: List[Chunk] = field(default_factory=list)
    steps: List[BuildStepOutput] = field(default_factory=list)

    def all_chunks(self) -> List[Chunk]:
        return [chunk for step in self.steps for chunk in step.chunks]

    def file_names(self) -> List[str]:
        names = [asset.file_name for asset in self.public_assets]
        names.extend(chunk.file_name for chunk in self.all_chunks())
        return names
