"""Manifest serialization."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

MANIFEST_FILENAME = "manifest.json"


def serialize_manifest(manifest: Mapping[str, Any], *, pretty: bool) -> str:
    if pretty:
        return json.dumps(manifest, indent=2)
    return json.dumps(manifest, separators=(",", ":"))


def write_manifest(manifest: Mapping[str, Any], out_dir: Path, *, pretty: bool) -> Path:
    """Write ``manifest.json`` into ``out_dir``; pretty-printed for development builds."""

    path = out_dir / MANIFEST_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize_manifest(manifest, pretty=pretty), encoding="utf-8")
    return path
