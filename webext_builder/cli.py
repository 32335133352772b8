from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import InlineConfig, ResolvedConfig, resolve_config
from .entrypoints.discovery import find_entrypoints
from .entrypoints.models import group_members
from .errors import WebextBuilderError
from .pipeline.dev import DevSession
from .pipeline.orchestrator import Pipeline, build_summary
from .schemas.config import DevSettings

logger = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("root", nargs="?", default=None, help="Project root (defaults to the current directory)")
    parser.add_argument("--config", dest="config_file")
    parser.add_argument("--browser", "-b")
    version = parser.add_mutually_exclusive_group()
    version.add_argument("--mv2", dest="manifest_version", action="store_const", const=2)
    version.add_argument("--mv3", dest="manifest_version", action="store_const", const=3)
    parser.add_argument("--mode", "-m")
    parser.add_argument("--bundler")
    parser.add_argument("--filter-entrypoint", action="append", dest="filter_entrypoints")
    parser.add_argument("--debug", action="store_true", default=None)


def _inline_config(args: argparse.Namespace) -> InlineConfig:
    dev: Optional[DevSettings] = None
    if getattr(args, "port", None) is not None or getattr(args, "hostname", None) is not None:
        overrides: Dict[str, Any] = {}
        if args.port is not None:
            overrides["port"] = args.port
        if args.hostname is not None:
            overrides["hostname"] = args.hostname
        dev = DevSettings(**overrides)
    return InlineConfig(
        root=args.root,
        config_file=args.config_file,
        browser=args.browser,
        manifest_version=args.manifest_version,
        mode=args.mode,
        debug=args.debug,
        bundler=args.bundler,
        filter_entrypoints=args.filter_entrypoints,
        dev=dev,
    )


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="webext-builder", description="Browser extension build pipeline")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build the extension for one browser")
    _add_common_arguments(build)

    dev = subparsers.add_parser("dev", help="Build in development mode and rebuild on changes")
    _add_common_arguments(dev)
    dev.add_argument("--port", type=int)
    dev.add_argument("--hostname")

    entrypoints = subparsers.add_parser("entrypoints", help="List the entrypoints that would be built")
    _add_common_arguments(entrypoints)

    args = parser.parse_args(argv)
    _configure_logging(bool(args.debug))

    try:
        if args.command == "build":
            config = resolve_config(_inline_config(args), command="build")
            return _run_build(config)
        if args.command == "dev":
            config = resolve_config(_inline_config(args), command="serve")
            return _run_dev(config)
        if args.command == "entrypoints":
            config = resolve_config(_inline_config(args), command="build")
            return _run_entrypoints(config)
    except WebextBuilderError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    parser.error("Unknown command")
    return 1


def _run_build(config: ResolvedConfig) -> int:
    pipeline = Pipeline(config)
    output = asyncio.run(pipeline.run())
    payload = {
        "target": config.target,
        "outDir": str(config.out_dir),
        "manifest": output.manifest,
        "publicAssets": [chunk.to_dict() for chunk in output.public_assets],
        "steps": [
            {
                "entrypoints": [entry.name for entry in group_members(step.group)],
                "chunks": [chunk.to_dict() for chunk in step.chunks],
            }
            for step in output.steps
        ],
        "files": [{"fileName": name, "size": size} for name, size in build_summary(output, config.out_dir)],
        "warnings": [str(warning) for warning in pipeline.warnings],
    }
    print(json.dumps(payload, indent=2))
    return 0


def _run_dev(config: ResolvedConfig) -> int:
    session = DevSession(config)
    try:
        asyncio.run(session.serve_forever())
    except KeyboardInterrupt:
        logger.info("Stopped dev session after %d pass(es)", session.passes)
    return 0


def _run_entrypoints(config: ResolvedConfig) -> int:
    payload: List[Dict[str, Any]] = [
        {
            "name": entry.name,
            "kind": entry.kind,
            "inputPath": config.relative(entry.input_path),
            "bundlePath": entry.bundle_path(config.out_dir),
            "options": entry.options.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
        for entry in find_entrypoints(config)
    ]
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
