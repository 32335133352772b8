from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, List, Optional, Set

import pytest

from webext_builder.building.bundler import Bundler
from webext_builder.building.models import Chunk
from webext_builder.config import InlineConfig, ResolvedConfig, resolve_config
from webext_builder.entrypoints.models import EntrypointGroup, group_members
from webext_builder.errors import BuildError

PACKAGE_JSON = {
    "name": "demo-extension",
    "description": "An extension used in tests",
    "version": "1.2.3-beta1",
}

CONTENT_FRONTMATTER = """/* ---
matches:
  - "*://*.example.com/*"
--- */
console.log("content");
"""


def write(root: Path, relative: str, text: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    write(root, "package.json", json.dumps(PACKAGE_JSON))
    (root / "entrypoints").mkdir()
    return root


@pytest.fixture()
def make_config(project: Path) -> Callable[..., ResolvedConfig]:
    def factory(command: str = "build", **overrides: Any) -> ResolvedConfig:
        overrides.setdefault("config_file", False)
        return resolve_config(InlineConfig(root=project, **overrides), command=command)  # type: ignore[arg-type]

    return factory


class RecordingBundler(Bundler):
    """Emits one chunk per entrypoint at its bundle path and records every call."""

    name = "recording"

    def __init__(self, *, styles: Optional[Set[str]] = None, fail: Optional[Set[str]] = None) -> None:
        self.calls: List[tuple[str, ...]] = []
        self.styles = set(styles or ())
        self.fail = set(fail or ())

    async def build(self, group: EntrypointGroup, config: ResolvedConfig) -> List[Chunk]:
        self.calls.append(tuple(entry.name for entry in group_members(group)))
        chunks: List[Chunk] = []
        for entry in group_members(group):
            if entry.name in self.fail:
                raise BuildError("bundler exploded", path=config.relative(entry.input_path))
            file_name = entry.bundle_path(config.out_dir)
            target = config.out_dir / file_name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(f"// {entry.name}\n", encoding="utf-8")
            chunks.append(Chunk(file_name=file_name, kind="asset" if entry.is_css else "script"))
            if entry.name in self.styles:
                chunks.append(Chunk(file_name=f"content-scripts/{entry.name}.css", kind="asset"))
        return chunks


@pytest.fixture()
def bundler() -> RecordingBundler:
    return RecordingBundler()
