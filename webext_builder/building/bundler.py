"""Bundlers compile one entrypoint group into output chunks."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shlex
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..config import ResolvedConfig
from ..errors import BuildError, ConfigError
from ..entrypoints.models import Entrypoint, EntrypointGroup, group_members
from ..schemas.config import BundlerSettings
from .models import Chunk

logger = logging.getLogger(__name__)

_PREPROCESSED_STYLE_SUFFIXES = {".scss", ".sass", ".less", ".styl", ".stylus"}


def describe_group(group: EntrypointGroup, config: ResolvedConfig) -> Dict[str, Any]:
    """Build configuration shared with the bundler: strategy, inputs and output file templates."""

    members = group_members(group)
    if isinstance(group, tuple):
        strategy = "multipage"
        output = {
            "entryFileNames": "chunks/[name]-[hash].js",
            "chunkFileNames": "chunks/[name]-[hash].js",
            "assetFileNames": "assets/[name]-[hash].[ext]",
        }
    else:
        strategy = group.spec.strategy
        css_dir = "content-scripts" if group.kind in {"content-script", "content-script-style"} else "assets"
        output = {
            "entryFileNames": group.bundle_path(config.out_dir),
            "assetFileNames": f"{css_dir}/{group.name}.[ext]",
        }
    return {
        "strategy": strategy,
        "mode": config.mode,
        "command": config.command,
        "browser": config.browser,
        "manifestVersion": config.manifest_version,
        "outDir": str(config.out_dir),
        "output": output,
        "entrypoints": [
            {
                "name": entry.name,
                "kind": entry.kind,
                "inputPath": str(entry.input_path),
                "bundlePath": entry.bundle_path(config.out_dir),
            }
            for entry in members
        ],
    }


class Bundler(ABC):
    name: str

    @abstractmethod
    async def build(self, group: EntrypointGroup, config: ResolvedConfig) -> List[Chunk]:
        ...


class CopyBundler(Bundler):
    """Writes each input to its bundle path unchanged. Suitable for plain JS/CSS/HTML sources.

    Stylesheets beside a directory-style content script are concatenated only when they are plain
    ``.css``; preprocessor sources need a real bundler.
    """

    name = "copy"

    async def build(self, group: EntrypointGroup, config: ResolvedConfig) -> List[Chunk]:
        chunks: List[Chunk] = []
        for entry in group_members(group):
            chunks.extend(await asyncio.to_thread(self._copy_entry, entry, config))
        return chunks

    def _copy_entry(self, entry: Entrypoint, config: ResolvedConfig) -> List[Chunk]:
        target = entry.output_file(entry.spec.extension)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(entry.input_path, target)
        kind = "script" if entry.spec.extension == ".js" else "asset"
        chunks = [Chunk(file_name=entry.bundle_path(config.out_dir), kind=kind)]

        source_dir = entry.source_dir()
        if entry.kind == "content-script" and source_dir is not None:
            styles: List[Path] = []
            for path in sorted(source_dir.iterdir()):
                if not path.is_file() or path.name.startswith("."):
                    continue
                if path.suffix == ".css":
                    styles.append(path)
                elif path.suffix in _PREPROCESSED_STYLE_SUFFIXES:
                    logger.debug("Copy bundler only concatenates plain CSS, skipping %s", config.relative(path))
            if styles:
                css_target = entry.output_file(".css")
                css_target.write_text(
                    "\n".join(path.read_text(encoding="utf-8") for path in styles),
                    encoding="utf-8",
                )
                chunks.append(Chunk(file_name=entry.bundle_path(config.out_dir, ".css"), kind="asset"))
        return chunks


class CommandBundler(Bundler):
    """Runs an external bundler command once per group.

    The command receives the group description as JSON through ``{group}`` and
    ``WEBEXT_BUILD_GROUP`` and must print the produced chunks as a JSON list of
    ``{"fileName": ..., "kind": "script" | "asset"}`` objects on stdout.
    """

    name = "command"

    def __init__(self, command: str, env: Optional[Mapping[str, str]] = None) -> None:
        self.command = command
        self.env = dict(env or {})

    async def build(self, group: EntrypointGroup, config: ResolvedConfig) -> List[Chunk]:
        description = describe_group(group, config)
        payload = json.dumps(description, sort_keys=True)
        cmd = self._render_command(payload, config)
        logger.debug("Executing bundler command: %s", cmd)
        proc = await asyncio.to_thread(
            subprocess.run,
            cmd,
            shell=True,
            check=False,
            capture_output=True,
            text=True,
            cwd=str(config.root),
            env={**os.environ, **self.env, **_build_env(payload, config)},
        )
        if proc.stderr:
            logger.debug(proc.stderr.strip())
        paths = ", ".join(config.relative(entry.input_path) for entry in group_members(group))
        if proc.returncode != 0:
            raise BuildError(f"Bundler command failed (exit {proc.returncode}): {proc.stderr.strip()}", path=paths)
        return _parse_chunks(proc.stdout, path=paths)

    def _render_command(self, payload: str, config: ResolvedConfig) -> str:
        replacements = {
            "{group}": shlex.quote(payload),
            "{out_dir}": shlex.quote(str(config.out_dir)),
            "{mode}": shlex.quote(config.mode),
            "{browser}": shlex.quote(config.browser),
            "{manifest_version}": str(config.manifest_version),
        }
        command = self.command
        for placeholder, value in replacements.items():
            command = command.replace(placeholder, value)
        return command


def _build_env(payload: str, config: ResolvedConfig) -> Dict[str, str]:
    return {
        "WEBEXT_BUILD_GROUP": payload,
        "WEBEXT_OUT_DIR": str(config.out_dir),
        "WEBEXT_MODE": config.mode,
        "WEBEXT_COMMAND": config.command,
        "WEBEXT_BROWSER": config.browser,
        "WEBEXT_MANIFEST_VERSION": str(config.manifest_version),
    }


def _parse_chunks(stdout: str, *, path: str) -> List[Chunk]:
    try:
        payload = json.loads(stdout or "[]")
    except json.JSONDecodeError as exc:
        raise BuildError(f"Bundler command printed invalid JSON: {exc}", path=path) from exc
    if isinstance(payload, dict):
        payload = payload.get("chunks", [])
    if not isinstance(payload, list):
        raise BuildError("Bundler command must print a list of chunks", path=path)

    chunks: List[Chunk] = []
    for item in payload:
        if not isinstance(item, dict) or "fileName" not in item:
            raise BuildError(f"Invalid chunk entry from bundler: {item!r}", path=path)
        kind = item.get("kind") or item.get("type") or "script"
        chunks.append(Chunk(file_name=str(item["fileName"]), kind="asset" if kind == "asset" else "script"))
    return chunks


def build_bundler(settings: BundlerSettings) -> Bundler:
    name = settings.name.lower()
    options = settings.options
    if name == "copy":
        return CopyBundler()
    if name == "command":
        command = options.get("command")
        if not command:
            raise ConfigError("Command bundler requires a 'command' option")
        env = {str(key): str(value) for key, value in dict(options.get("env") or {}).items()}
        return CommandBundler(str(command), env=env)
    raise ConfigError(f"Unknown bundler '{settings.name}'")
