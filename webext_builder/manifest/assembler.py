"""Manifest assembly.

The manifest is rebuilt from scratch on every pass: package metadata first, then one fragment
per entrypoint kind, then user overrides, then development-only additions. Each kind has a
contributor in :data:`CONTRIBUTORS`; kinds that never appear in the manifest map to
:func:`_not_listed`.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar

from ..building.models import BuildStepOutput, Chunk
from ..config import ResolvedConfig
from ..entrypoints.models import Entrypoint
from ..errors import BrowserCompatibilityWarning, ConfigError
from ..schemas.options import (
    BackgroundOptions,
    BaseEntrypointOptions,
    ContentScriptOptions,
    OptionsPageOptions,
    PopupOptions,
)
from .csp import DEFAULT_MV2_CSP, DEFAULT_MV3_CSP, ContentSecurityPolicy
from .package import PackageMetadata, load_package_metadata

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^((0|[1-9][0-9]{0,8})([.](0|[1-9][0-9]{0,8})){0,3}).*$")


def simplify_version(version_name: str) -> str:
    """Strip suffixes browsers reject, so ``1.2.3-beta1`` becomes ``1.2.3``."""

    match = _VERSION_RE.match(version_name)
    if match is None:
        raise ConfigError(
            f'Cannot simplify package.json version "{version_name}" to a valid extension version, "X.Y.Z"',
            path="package.json",
        )
    return match.group(1)


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


OptionsT = TypeVar("OptionsT", bound=BaseEntrypointOptions)


def _options_of(entry: Entrypoint, expected: Type[OptionsT], config: ResolvedConfig) -> OptionsT:
    options = entry.options
    if not isinstance(options, expected):
        raise ConfigError(
            f"Expected {expected.__name__} for a {entry.kind} entrypoint, got {type(options).__name__}",
            path=config.relative(entry.input_path),
        )
    return options


@dataclass
class ManifestContext:
    config: ResolvedConfig
    manifest: Dict[str, Any]
    chunks: List[Chunk]
    warnings: List[BrowserCompatibilityWarning] = field(default_factory=list)

    @property
    def is_firefox(self) -> bool:
        return self.config.browser == "firefox"

    @property
    def mv3(self) -> bool:
        return self.config.manifest_version == 3

    def path(self, entry: Entrypoint, ext: Optional[str] = None) -> str:
        return entry.bundle_path(self.config.out_dir, ext)

    def warn(self, message: str, entry: Entrypoint) -> None:
        warning = BrowserCompatibilityWarning(message, path=self.config.relative(entry.input_path))
        logger.warning("%s", warning)
        self.warnings.append(warning)


Contributor = Callable[[ManifestContext, List[Entrypoint]], None]


def _background(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    entry = entries[0]
    options = _options_of(entry, BackgroundOptions, ctx.config)
    script = ctx.path(entry)
    if ctx.mv3:
        ctx.manifest["background"] = _drop_none({"type": options.type, "service_worker": script})
    else:
        ctx.manifest["background"] = _drop_none({"persistent": options.persistent, "scripts": [script]})


def _url_override(key: str, *, firefox: bool) -> Contributor:
    def contribute(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
        entry = entries[0]
        if ctx.is_firefox and not firefox:
            ctx.warn(
                f"The {key} page is not supported by Firefox. "
                f"chrome_url_overrides.{key} was not added to the manifest",
                entry,
            )
            return
        ctx.manifest.setdefault("chrome_url_overrides", {})[key] = ctx.path(entry)

    return contribute


def _popup(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    entry = entries[0]
    options = _options_of(entry, PopupOptions, ctx.config)
    action = _drop_none(
        {
            "default_icon": options.default_icon,
            "default_title": options.default_title,
            "default_popup": ctx.path(entry),
        }
    )
    key = "action" if ctx.mv3 else (options.mv2_key or "browser_action")
    ctx.manifest[key] = action


def _devtools(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    ctx.manifest["devtools_page"] = ctx.path(entries[0])


def _options(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    entry = entries[0]
    options = _options_of(entry, OptionsPageOptions, ctx.config)
    ctx.manifest["options_ui"] = _drop_none(
        {
            "open_in_tab": options.open_in_tab,
            "browser_style": options.browser_style if ctx.is_firefox else None,
            "chrome_style": options.chrome_style if not ctx.is_firefox else None,
            "page": ctx.path(entry),
        }
    )


def _sandbox(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    if ctx.is_firefox:
        for entry in entries:
            ctx.warn("Sandboxed pages not supported by Firefox. sandbox.pages was not added to the manifest", entry)
        return
    ctx.manifest["sandbox"] = {"pages": [ctx.path(entry) for entry in entries]}


def _sidepanel(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    default = next((entry for entry in entries if entry.name == "sidepanel"), entries[0])
    page = ctx.path(default)
    if ctx.is_firefox:
        ctx.manifest["sidebar_action"] = {"default_panel": page}
    elif ctx.mv3:
        ctx.manifest["side_panel"] = {"default_path": page}
    else:
        ctx.warn(
            "Side panel not supported by Chromium using MV2. side_panel.default_path was not added to the manifest",
            default,
        )


def content_script_signature(options: ContentScriptOptions) -> str:
    """Canonical, key-order independent encoding of a content script's manifest options."""

    return json.dumps(options.manifest_fields(), sort_keys=True, separators=(",", ":"))


def _content_scripts(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    if ctx.config.is_dev:
        # Registered at runtime by the dev server; see _add_dev_host_permissions.
        return

    buckets: Dict[str, List[Entrypoint]] = {}
    for entry in entries:
        options = _options_of(entry, ContentScriptOptions, ctx.config)
        buckets.setdefault(content_script_signature(options), []).append(entry)

    content_scripts: List[Dict[str, Any]] = []
    for scripts in buckets.values():
        first = _options_of(scripts[0], ContentScriptOptions, ctx.config)
        declaration: Dict[str, Any] = dict(first.manifest_fields())
        css = _content_script_css(scripts, ctx)
        if css:
            declaration["css"] = sorted(css)
        declaration["js"] = sorted(ctx.path(entry) for entry in scripts)
        content_scripts.append(declaration)
    ctx.manifest["content_scripts"] = content_scripts


def _content_script_css(scripts: Sequence[Entrypoint], ctx: ManifestContext) -> List[str]:
    file_names = {chunk.file_name for chunk in ctx.chunks}
    css: List[str] = []
    for entry in scripts:
        for candidate in (f"content-scripts/{entry.name}.css", f"assets/{entry.name}.css"):
            if candidate in file_names:
                css.append(candidate)
                break
    return css


def _not_listed(ctx: ManifestContext, entries: List[Entrypoint]) -> None:
    return None


# Insertion order is the order fragments are added to the manifest.
CONTRIBUTORS: Dict[str, Contributor] = {
    "background": _background,
    "bookmarks": _url_override("bookmarks", firefox=False),
    "history": _url_override("history", firefox=False),
    "newtab": _url_override("newtab", firefox=True),
    "popup": _popup,
    "devtools": _devtools,
    "options": _options,
    "sandbox": _sandbox,
    "sidepanel": _sidepanel,
    "content-script": _content_scripts,
    "content-script-style": _not_listed,
    "unlisted-page": _not_listed,
    "unlisted-script": _not_listed,
    "unlisted-style": _not_listed,
}


def _permissions_key(config: ResolvedConfig) -> str:
    return "host_permissions" if config.manifest_version == 3 else "permissions"


def _add_dev_host_permissions(manifest: Dict[str, Any], entrypoints: Sequence[Entrypoint], config: ResolvedConfig) -> None:
    scripts = [entry for entry in entrypoints if entry.kind == "content-script"]
    if not scripts:
        return
    key = _permissions_key(config)
    permissions = set(manifest.get(key) or [])
    for entry in scripts:
        permissions.update(_options_of(entry, ContentScriptOptions, config).matches)
    manifest[key] = sorted(permissions)


def _add_dev_mode_csp(manifest: Dict[str, Any], config: ResolvedConfig) -> None:
    server = config.server
    if server is None:
        return

    key = _permissions_key(config)
    permission = f"http://{server.hostname}/*"
    permissions = list(manifest.get(key) or [])
    if permission not in permissions:
        permissions.append(permission)
    manifest[key] = permissions

    existing = manifest.get("content_security_policy")
    if config.manifest_version == 3:
        current = existing.get("extension_pages") if isinstance(existing, dict) else None
        csp = ContentSecurityPolicy(current or DEFAULT_MV3_CSP)
    else:
        csp = ContentSecurityPolicy(existing if isinstance(existing, str) else DEFAULT_MV2_CSP)
    csp.add("script-src", server.origin)

    if config.manifest_version == 3:
        policy = dict(existing) if isinstance(existing, dict) else {}
        policy["extension_pages"] = str(csp)
        manifest["content_security_policy"] = policy
    else:
        manifest["content_security_policy"] = str(csp)


class ManifestAssembler:
    """Builds the manifest for one pass and records browser compatibility warnings."""

    def __init__(self, config: ResolvedConfig, *, package: Optional[PackageMetadata] = None) -> None:
        self.config = config
        self.package = package
        self.warnings: List[BrowserCompatibilityWarning] = []

    def assemble(self, entrypoints: Sequence[Entrypoint], steps: Sequence[BuildStepOutput]) -> Dict[str, Any]:
        config = self.config
        package = (self.package or load_package_metadata(config.root)).require()

        manifest: Dict[str, Any] = {
            "manifest_version": config.manifest_version,
            "name": package.name,
            "short_name": package.short_name,
            "description": package.description,
            "version": simplify_version(package.version or ""),
            "version_name": None if config.browser == "firefox" else package.version,
        }
        manifest = _drop_none(manifest)

        ctx = ManifestContext(
            config=config,
            manifest=manifest,
            chunks=[chunk for step in steps for chunk in step.chunks],
        )
        by_kind: Dict[str, List[Entrypoint]] = {}
        for entry in entrypoints:
            if entry.kind not in CONTRIBUTORS:
                raise ConfigError(f"No manifest contributor for entrypoint kind '{entry.kind}'")
            by_kind.setdefault(entry.kind, []).append(entry)
        for kind, contribute in CONTRIBUTORS.items():
            entries = by_kind.get(kind)
            if entries:
                contribute(ctx, entries)

        manifest.update(copy.deepcopy(dict(config.manifest)))

        if config.is_dev:
            _add_dev_host_permissions(manifest, entrypoints, config)
            _add_dev_mode_csp(manifest, config)

        if config.transform_manifest is not None:
            config.transform_manifest(manifest)

        self.warnings = ctx.warnings
        return manifest
