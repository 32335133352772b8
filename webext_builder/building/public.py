"""Copy the public directory into the output directory."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from ..config import ResolvedConfig
from ..entrypoints.naming import is_hidden
from .models import Chunk


def list_public_files(public_dir: Path) -> List[str]:
    if not public_dir.is_dir():
        return []
    files = [
        path.relative_to(public_dir).as_posix()
        for path in public_dir.rglob("*")
        if path.is_file()
    ]
    return sorted(name for name in files if not is_hidden(name))


def copy_public_directory(config: ResolvedConfig) -> List[Chunk]:
    assets: List[Chunk] = []
    for name in list_public_files(config.public_dir):
        target = config.out_dir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(config.public_dir / name, target)
        assets.append(Chunk(file_name=name, kind="asset"))
    return assets
