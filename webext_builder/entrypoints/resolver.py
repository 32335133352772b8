"""Per-browser option resolution."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from ..errors import ConfigError
from ..schemas.options import PER_BROWSER_EXEMPT


def is_active(
    browser: str,
    *,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    path: Optional[str] = None,
) -> bool:
    """Return whether an entrypoint with the given filters is built for ``browser``."""

    if include is not None and exclude is not None:
        raise ConfigError("Entrypoint cannot declare both 'include' and 'exclude'", path=path)
    if include is not None:
        return browser in include
    if exclude is not None:
        return browser not in exclude
    return True


def resolve_per_browser_option(option: Any, browser: str) -> Any:
    """Pick ``option[browser]`` when the option is a per-browser table, else return it unchanged."""

    if isinstance(option, Mapping):
        return option.get(browser)
    return option


def resolve_definition(definition: Mapping[str, Any], browser: str) -> Dict[str, Any]:
    """Resolve every per-browser value of an evaluated definition, dropping unset ones."""

    resolved: Dict[str, Any] = {}
    for key, value in definition.items():
        if key not in PER_BROWSER_EXEMPT:
            value = resolve_per_browser_option(value, browser)
        if value is not None:
            resolved[key] = value
    return resolved
