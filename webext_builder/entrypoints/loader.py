"""Definition loaders.

Evaluating an entrypoint's exported definition is delegated to a loader. The built-in loaders
read declarative metadata instead of executing source: ``<meta name="manifest.*">`` tags in HTML
pages and a leading YAML frontmatter comment in scripts and stylesheets.
"""

from __future__ import annotations

import logging
import re
from html.parser import HTMLParser
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

import yaml

from ..errors import ConfigError

logger = logging.getLogger(__name__)


class DefinitionLoader(Protocol):
    def load(self, path: Path, kind: str, name: str) -> Mapping[str, Any]:  # pragma: no cover - interface
        ...


_FRONTMATTER_RE = re.compile(r"^\s*/\*\s*---\s*\n(?P<body>.*?)\n\s*---\s*\*/", re.DOTALL)


class _ManifestMetaParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.meta: Dict[str, str] = {}
        self.title: Optional[str] = None
        self._in_title = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        if tag == "title":
            self._in_title = True
            return
        if tag != "meta":
            return
        values = dict(attrs)
        name = values.get("name") or ""
        if name.startswith("manifest.") and values.get("content") is not None:
            self.meta[name[len("manifest."):]] = values["content"] or ""

    def handle_endtag(self, tag: str) -> None:
        if tag == "title":
            self._in_title = False

    def handle_data(self, data: str) -> None:
        if self._in_title and data.strip():
            self.title = (self.title or "") + data.strip()


def _parse_yaml(text: str, *, source: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid entrypoint metadata: {exc}", path=source) from exc


def _parse_meta_value(value: str, *, source: str) -> Any:
    """Decode flow collections (``[...]``, ``{...}``) as YAML; other values stay literal strings.

    Scalars like ``"true"`` are coerced by the options model for the fields that expect them.
    """

    if value.lstrip().startswith(("[", "{")):
        return _parse_yaml(value, source=source)
    return value


class FrontmatterDefinitionLoader:
    """Reads definitions from HTML meta tags or a leading ``/* --- yaml --- */`` comment."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = root

    def load(self, path: Path, kind: str, name: str) -> Mapping[str, Any]:
        source = self._describe(path)
        logger.debug("Loading entrypoint definition: %s", source)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Cannot read entrypoint definition: {exc}", path=source) from exc
        if path.suffix == ".html":
            return self._load_html(text, kind, source)
        return self._load_frontmatter(text, source)

    def _load_html(self, text: str, kind: str, source: str) -> Dict[str, Any]:
        parser = _ManifestMetaParser()
        parser.feed(text)
        parser.close()
        definition: Dict[str, Any] = {
            key: _parse_meta_value(value, source=source) for key, value in parser.meta.items()
        }
        if kind == "popup" and parser.title and "default_title" not in definition:
            definition["default_title"] = parser.title
        return definition

    def _load_frontmatter(self, text: str, source: str) -> Dict[str, Any]:
        match = _FRONTMATTER_RE.match(text)
        if match is None:
            return {}
        loaded = _parse_yaml(match.group("body"), source=source)
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigError("Entrypoint frontmatter must be a mapping", path=source)
        return loaded

    def _describe(self, path: Path) -> str:
        if self.root is None:
            return path.as_posix()
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


class MappingDefinitionLoader:
    """Serves definitions from a mapping keyed by entrypoint name."""

    def __init__(self, definitions: Mapping[str, Mapping[str, Any]]) -> None:
        self.definitions = definitions

    def load(self, path: Path, kind: str, name: str) -> Mapping[str, Any]:
        return dict(self.definitions.get(name, {}))


class ChainedDefinitionLoader:
    """Merges the results of several loaders; later loaders win per key."""

    def __init__(self, loaders: Sequence[DefinitionLoader]) -> None:
        self.loaders = list(loaders)

    def load(self, path: Path, kind: str, name: str) -> Mapping[str, Any]:
        merged: Dict[str, Any] = {}
        for loader in self.loaders:
            merged.update(loader.load(path, kind, name))
        return merged
