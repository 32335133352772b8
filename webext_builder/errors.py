"""Error types raised by the build pipeline."""

from __future__ import annotations

from typing import Optional


class WebextBuilderError(RuntimeError):
    """Base class for pipeline failures that carry an offending path."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        self.path = path
        self.detail = message
        super().__init__(f"{path}: {message}" if path else message)


class ConfigError(WebextBuilderError):
    """Raised for invalid configuration, entrypoint definitions or package metadata."""


class ClassificationError(WebextBuilderError):
    """Raised when a file cannot be mapped to an entrypoint kind, or entrypoints conflict."""


class BuildError(WebextBuilderError):
    """Raised when the bundler fails to build a group."""


class BrowserCompatibilityWarning(UserWarning):
    """A manifest fragment was dropped because the target browser does not support it."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
