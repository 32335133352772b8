"""Build pipeline that turns an entrypoints directory into a browser extension."""

from __future__ import annotations

from typing import Optional

from .building import BuildOutput, Bundler, Chunk
from .config import InlineConfig, ResolvedConfig, resolve_config
from .entrypoints import DefinitionLoader, Entrypoint
from .errors import BrowserCompatibilityWarning, BuildError, ClassificationError, ConfigError, WebextBuilderError
from .pipeline import DevSession, Pipeline

__version__ = "0.1.0"


async def build(
    inline: Optional[InlineConfig] = None,
    *,
    bundler: Optional[Bundler] = None,
    loader: Optional[DefinitionLoader] = None,
) -> BuildOutput:
    """Run a single production pass."""

    config = resolve_config(inline, command="build")
    return await Pipeline(config, bundler=bundler, loader=loader).run()


def create_dev_session(
    inline: Optional[InlineConfig] = None,
    *,
    bundler: Optional[Bundler] = None,
    loader: Optional[DefinitionLoader] = None,
) -> DevSession:
    config = resolve_config(inline, command="serve")
    return DevSession(config, bundler=bundler, loader=loader)


__all__ = [
    "BrowserCompatibilityWarning",
    "BuildError",
    "BuildOutput",
    "Bundler",
    "Chunk",
    "ClassificationError",
    "ConfigError",
    "DevSession",
    "Entrypoint",
    "InlineConfig",
    "Pipeline",
    "ResolvedConfig",
    "WebextBuilderError",
    "build",
    "create_dev_session",
    "resolve_config",
]
