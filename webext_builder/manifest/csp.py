"""Content security policy parsing and serialization."""

from __future__ import annotations

from typing import Dict, List

DEFAULT_MV2_CSP = "script-src 'self'; object-src 'self';"
DEFAULT_MV3_CSP = "script-src 'self' 'wasm-unsafe-eval'; object-src 'self';"


class ContentSecurityPolicy:
    """Ordered ``directive -> sources`` view of a CSP string."""

    def __init__(self, csp: str = "") -> None:
        self.directives: Dict[str, List[str]] = {}
        for section in csp.split(";"):
            parts = section.split()
            if not parts:
                continue
            directive, *sources = parts
            self.directives.setdefault(directive, [])
            for source in sources:
                if source not in self.directives[directive]:
                    self.directives[directive].append(source)

    def add(self, directive: str, *sources: str) -> "ContentSecurityPolicy":
        values = self.directives.setdefault(directive, [])
        for source in sources:
            if source not in values:
                values.append(source)
        return self

    def __str__(self) -> str:
        return " ".join(
            " ".join([directive, *sources]) + ";" for directive, sources in self.directives.items()
        )
