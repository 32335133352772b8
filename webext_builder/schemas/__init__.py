"""Schema definitions for entrypoint options and user configuration."""

from .config import BundlerSettings, DevSettings, UserConfig
from .options import (
    BackgroundOptions,
    BaseEntrypointOptions,
    ContentScriptOptions,
    EntrypointOptions,
    GenericOptions,
    OptionsPageOptions,
    PopupOptions,
    parse_options,
)

__all__ = [
    "BackgroundOptions",
    "BaseEntrypointOptions",
    "BundlerSettings",
    "ContentScriptOptions",
    "DevSettings",
    "EntrypointOptions",
    "GenericOptions",
    "OptionsPageOptions",
    "PopupOptions",
    "UserConfig",
    "parse_options",
]
