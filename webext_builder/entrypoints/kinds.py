"""Registry of entrypoint kinds and the file naming conventions that select them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Literal, Optional, Tuple

BuildStrategy = Literal["multipage", "library", "css"]

_HTML = r"\.html"
_SCRIPT = r"\.[cm]?[jt]sx?"
_STYLE = r"\.(?:css|scss|sass|less|styl|stylus)"


def _convention(stem: str, ext: str, *, prefixed: bool = False) -> re.Pattern[str]:
    """Match ``stem.ext`` and ``stem/index.ext``; ``prefixed`` also allows ``<name>.stem``."""

    prefix = r"(?:[^/]+\.)?" if prefixed else ""
    return re.compile(rf"^{prefix}{stem}(?:{ext}|/index{ext})$")


def _any_name(ext: str) -> re.Pattern[str]:
    return re.compile(rf"^[^/]+(?:{ext}|/index{ext})$")


@dataclass(frozen=True, slots=True)
class EntrypointKind:
    name: str
    patterns: Tuple[re.Pattern[str], ...]
    extension: str
    strategy: BuildStrategy
    output_subdir: str = ""
    singleton: bool = False
    is_page: bool = False


def _page(name: str, *, singleton: bool = False, prefixed: bool = False) -> EntrypointKind:
    return EntrypointKind(
        name=name,
        patterns=(_convention(name, _HTML, prefixed=prefixed),),
        extension=".html",
        strategy="multipage",
        singleton=singleton,
        is_page=True,
    )


# Classification order matters: the first kind with a matching pattern wins.
KIND_ORDER: Tuple[EntrypointKind, ...] = (
    _page("sandbox", prefixed=True),
    _page("bookmarks"),
    _page("history"),
    _page("newtab", singleton=True),
    _page("sidepanel", prefixed=True),
    _page("devtools", singleton=True),
    EntrypointKind(
        name="background",
        patterns=(_convention("background", _SCRIPT),),
        extension=".js",
        strategy="library",
        singleton=True,
    ),
    EntrypointKind(
        name="content-script",
        patterns=(_convention("content", _SCRIPT, prefixed=True),),
        extension=".js",
        strategy="library",
        output_subdir="content-scripts",
    ),
    EntrypointKind(
        name="content-script-style",
        patterns=(_convention("content", _STYLE, prefixed=True),),
        extension=".css",
        strategy="css",
        output_subdir="content-scripts",
    ),
    _page("popup", singleton=True),
    _page("options", singleton=True),
    EntrypointKind(
        name="unlisted-page",
        patterns=(_any_name(_HTML),),
        extension=".html",
        strategy="multipage",
        is_page=True,
    ),
    EntrypointKind(
        name="unlisted-script",
        patterns=(_any_name(_SCRIPT),),
        extension=".js",
        strategy="library",
    ),
    EntrypointKind(
        name="unlisted-style",
        patterns=(_any_name(_STYLE),),
        extension=".css",
        strategy="css",
        output_subdir="assets",
    ),
)

KINDS: Dict[str, EntrypointKind] = {kind.name: kind for kind in KIND_ORDER}

SINGLETON_KINDS = frozenset(kind.name for kind in KIND_ORDER if kind.singleton)


def match_kind(relative_path: str) -> Optional[EntrypointKind]:
    """Return the kind whose naming convention matches a posix path relative to the entrypoints dir."""

    for kind in KIND_ORDER:
        if any(pattern.match(relative_path) for pattern in kind.patterns):
            return kind
    return None


def get_kind(name: str) -> EntrypointKind:
    try:
        return KINDS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown entrypoint kind '{name}'") from exc
