from __future__ import annotations

import json
from pathlib import Path

import webext_builder
from webext_builder import cli

from conftest import CONTENT_FRONTMATTER, write


def test_version_string_present() -> None:
    assert isinstance(webext_builder.__version__, str)
    assert webext_builder.__version__


def test_build_outputs_json(project: Path, capsys) -> None:
    write(project, "entrypoints/popup.html", "<title>Hello</title>")
    write(project, "entrypoints/overlay.content.ts", CONTENT_FRONTMATTER)

    exit_code = cli.main(["build", str(project), "--browser", "firefox", "--mv3"])
    captured = capsys.readouterr()

    assert exit_code == 0
    payload = json.loads(captured.out)
    assert payload["target"] == "firefox-mv3"
    assert payload["manifest"]["action"] == {"default_title": "Hello", "default_popup": "popup.html"}
    assert payload["publicAssets"][0] == {"fileName": "manifest.json", "kind": "asset"}
    assert (project / ".output" / "firefox-mv3" / "content-scripts" / "overlay.js").exists()
    assert {entry["fileName"] for entry in payload["files"]} >= {"manifest.json", "popup.html"}


def test_build_reports_errors_on_stderr(project: Path, capsys) -> None:
    (project / "package.json").unlink()

    exit_code = cli.main(["build", str(project)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "package.json" in captured.err
    assert captured.out == ""


def test_entrypoints_command(project: Path, capsys) -> None:
    write(project, "entrypoints/background.ts")
    write(project, "entrypoints/options.html")

    exit_code = cli.main(["entrypoints", str(project), "--filter-entrypoint", "background"])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0
    assert payload == [
        {
            "name": "background",
            "kind": "background",
            "inputPath": "entrypoints/background.ts",
            "bundlePath": "background.js",
            "options": {"kind": "background"},
        }
    ]
