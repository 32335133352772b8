"""Partition active entrypoints into bundler invocations."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..entrypoints.models import Entrypoint, EntrypointGroup


def group_entrypoints(entrypoints: Sequence[Entrypoint]) -> List[EntrypointGroup]:
    """Group entrypoints for building.

    All HTML pages share one multi-page build, placed where the first page was discovered.
    Scripts that run in injected or worker contexts (background, content scripts, unlisted
    scripts) and stylesheets each build alone so their output has no shared chunks.
    """

    groups: List[object] = []
    pages: Optional[List[Entrypoint]] = None
    for entry in entrypoints:
        if entry.spec.strategy == "multipage":
            if pages is None:
                pages = []
                groups.append(pages)
            pages.append(entry)
        else:
            groups.append(entry)
    return [tuple(group) if isinstance(group, list) else group for group in groups]  # type: ignore[misc]
