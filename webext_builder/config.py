"""Configuration resolution.

A pipeline reads one immutable :class:`ResolvedConfig`, built by :func:`resolve_config` from
built-in defaults, the project's config file and inline values (highest precedence).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Sequence, Union

import yaml
from pydantic import ValidationError

from .errors import ConfigError
from .schemas.config import BundlerSettings, DevSettings, UserConfig

logger = logging.getLogger(__name__)

Command = Literal["build", "serve"]

CONFIG_FILENAMES = ("webext.config.yaml", "webext.config.yml", "webext.config.json")


@dataclass(frozen=True, slots=True)
class ConfigEnv:
    """Values passed to a manifest factory."""

    mode: str
    command: Command
    browser: str
    manifest_version: int


ManifestFactory = Callable[[ConfigEnv], Mapping[str, Any]]
ManifestTransform = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True, slots=True)
class DevServerInfo:
    hostname: str
    port: int

    @property
    def origin(self) -> str:
        return f"http://{self.hostname}:{self.port}"


@dataclass(slots=True)
class InlineConfig:
    """Programmatic or CLI supplied configuration. ``None`` means "not set"."""

    root: Optional[Union[str, Path]] = None
    config_file: Optional[Union[str, Path, bool]] = None
    src_dir: Optional[Union[str, Path]] = None
    entrypoints_dir: Optional[Union[str, Path]] = None
    public_dir: Optional[Union[str, Path]] = None
    out_dir: Optional[Union[str, Path]] = None
    browser: Optional[str] = None
    manifest_version: Optional[int] = None
    mode: Optional[str] = None
    debug: Optional[bool] = None
    manifest: Optional[Union[Mapping[str, Any], ManifestFactory]] = None
    transform_manifest: Optional[ManifestTransform] = None
    filter_entrypoints: Optional[Sequence[str]] = None
    entrypoints: Optional[Mapping[str, Mapping[str, Any]]] = None
    bundler: Optional[str] = None
    bundler_options: Optional[Mapping[str, Any]] = None
    dev: Optional[DevSettings] = None


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    root: Path
    src_dir: Path
    entrypoints_dir: Path
    public_dir: Path
    out_base_dir: Path
    out_dir: Path
    browser: str
    manifest_version: int
    mode: str
    command: Command
    debug: bool
    manifest: Mapping[str, Any]
    definitions: Mapping[str, Mapping[str, Any]]
    bundler: BundlerSettings
    dev: DevSettings
    filter_entrypoints: Optional[frozenset[str]] = None
    transform_manifest: Optional[ManifestTransform] = field(default=None, compare=False)
    server: Optional[DevServerInfo] = None

    @property
    def env(self) -> ConfigEnv:
        return ConfigEnv(
            mode=self.mode,
            command=self.command,
            browser=self.browser,
            manifest_version=self.manifest_version,
        )

    @property
    def is_dev(self) -> bool:
        return self.command == "serve"

    @property
    def target(self) -> str:
        return f"{self.browser}-mv{self.manifest_version}"

    def relative(self, path: Path) -> str:
        """Return ``path`` relative to the project root, posix style."""

        try:
            return Path(path).resolve().relative_to(self.root).as_posix()
        except ValueError:
            return Path(path).as_posix()


def resolve_config(inline: Optional[InlineConfig] = None, command: Command = "build") -> ResolvedConfig:
    """Merge defaults, the config file and ``inline`` into a :class:`ResolvedConfig`."""

    inline = inline or InlineConfig()
    root = Path(inline.root).resolve() if inline.root else Path.cwd().resolve()
    user = _load_user_config(root, inline.config_file)

    debug = _pick(inline.debug, user.debug, False)
    browser = _pick(inline.browser, user.browser, "chrome")
    if not isinstance(browser, str) or not browser:
        raise ConfigError(f"Invalid target browser: {browser!r}")
    manifest_version = _pick(
        inline.manifest_version,
        user.manifest_version,
        2 if browser in {"firefox", "safari"} else 3,
    )
    if manifest_version not in (2, 3):
        raise ConfigError(f"Unsupported manifest version: {manifest_version!r}")
    mode = _pick(inline.mode, user.mode, "production" if command == "build" else "development")

    src_dir = _resolve_dir(root, _pick(inline.src_dir, user.src_dir, None), root)
    entrypoints_dir = _resolve_dir(
        src_dir, _pick(inline.entrypoints_dir, user.entrypoints_dir, None), src_dir / "entrypoints"
    )
    public_dir = _resolve_dir(src_dir, _pick(inline.public_dir, user.public_dir, None), src_dir / "public")
    out_base_dir = _resolve_dir(root, _pick(inline.out_dir, user.out_dir, None), root / ".output")
    out_dir = out_base_dir / f"{browser}-mv{manifest_version}"

    env = ConfigEnv(mode=mode, command=command, browser=browser, manifest_version=manifest_version)
    manifest = dict(user.manifest)
    manifest.update(_resolve_manifest_overrides(env, inline.manifest))

    definitions: Dict[str, Mapping[str, Any]] = {
        name: MappingProxyType(dict(values)) for name, values in user.entrypoints.items()
    }
    for name, values in (inline.entrypoints or {}).items():
        definitions[name] = MappingProxyType({**definitions.get(name, {}), **values})

    filter_names = _pick(inline.filter_entrypoints, user.filter_entrypoints, None)

    bundler = user.bundler or BundlerSettings()
    if inline.bundler is not None or inline.bundler_options is not None:
        bundler = BundlerSettings(
            name=inline.bundler or bundler.name,
            options={**bundler.options, **dict(inline.bundler_options or {})},
        )

    config = ResolvedConfig(
        root=root,
        src_dir=src_dir,
        entrypoints_dir=entrypoints_dir,
        public_dir=public_dir,
        out_base_dir=out_base_dir,
        out_dir=out_dir,
        browser=browser,
        manifest_version=manifest_version,
        mode=mode,
        command=command,
        debug=bool(debug),
        manifest=MappingProxyType(manifest),
        definitions=MappingProxyType(definitions),
        bundler=bundler,
        dev=inline.dev or user.dev or DevSettings(),
        filter_entrypoints=frozenset(filter_names) if filter_names else None,
        transform_manifest=inline.transform_manifest,
    )
    logger.debug("Resolved config for %s (%s, %s)", config.target, config.mode, config.command)
    return config


def _pick(inline_value: Any, user_value: Any, default: Any) -> Any:
    if inline_value is not None:
        return inline_value
    if user_value is not None:
        return user_value
    return default


def _resolve_dir(base: Path, value: Optional[Union[str, Path]], default: Path) -> Path:
    if value is None:
        return default.resolve()
    path = Path(value)
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _resolve_manifest_overrides(
    env: ConfigEnv,
    manifest: Optional[Union[Mapping[str, Any], ManifestFactory]],
) -> Mapping[str, Any]:
    if manifest is None:
        return {}
    resolved = manifest(env) if callable(manifest) else manifest
    if not isinstance(resolved, Mapping):
        raise ConfigError(f"Manifest overrides must be a mapping, got {type(resolved).__name__}")
    return resolved


def _find_config_file(root: Path, config_file: Optional[Union[str, Path, bool]]) -> Optional[Path]:
    if config_file is False:
        return None
    if config_file not in (None, True):
        path = Path(config_file)  # type: ignore[arg-type]
        if not path.is_absolute():
            path = root / path
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path
    for name in CONFIG_FILENAMES:
        candidate = root / name
        if candidate.exists():
            return candidate
    return None


def _load_user_config(root: Path, config_file: Optional[Union[str, Path, bool]]) -> UserConfig:
    path = _find_config_file(root, config_file)
    if path is None:
        return UserConfig()

    text = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to parse config file: {exc}", path=path.name) from exc

    try:
        return UserConfig.model_validate(payload or {})
    except ValidationError as exc:
        raise ConfigError(str(exc), path=path.name) from exc
