from __future__ import annotations

from pathlib import Path

from webext_builder.building.bundler import describe_group
from webext_builder.building.grouping import group_entrypoints
from webext_builder.entrypoints.discovery import find_entrypoints
from webext_builder.entrypoints.models import group_members

from conftest import CONTENT_FRONTMATTER, write


def _layout(project: Path) -> None:
    write(project, "entrypoints/a.content.ts", CONTENT_FRONTMATTER)
    write(project, "entrypoints/b.content.ts", CONTENT_FRONTMATTER)
    write(project, "entrypoints/background.ts")
    write(project, "entrypoints/iframe.html")
    write(project, "entrypoints/options.html")
    write(project, "entrypoints/popup.html")
    write(project, "entrypoints/renderer.sandbox.html")
    write(project, "entrypoints/theme.css")
    write(project, "entrypoints/ui.content.css")


def test_pages_share_one_group_and_scripts_build_alone(project: Path, make_config) -> None:
    _layout(project)
    groups = group_entrypoints(find_entrypoints(make_config()))

    labels = [[entry.name for entry in group_members(group)] for group in groups]
    assert labels == [
        ["a"],
        ["b"],
        ["background"],
        ["iframe", "options", "popup", "renderer"],
        ["theme"],
        ["ui"],
    ]
    assert isinstance(groups[3], tuple)
    assert not isinstance(groups[0], tuple)


def test_grouping_is_deterministic(project: Path, make_config) -> None:
    _layout(project)
    config = make_config()

    assert group_entrypoints(find_entrypoints(config)) == group_entrypoints(find_entrypoints(config))


def test_describe_group_output_templates(project: Path, make_config) -> None:
    _layout(project)
    config = make_config()
    groups = group_entrypoints(find_entrypoints(config))

    pages = describe_group(groups[3], config)
    assert pages["strategy"] == "multipage"
    assert pages["output"]["entryFileNames"] == "chunks/[name]-[hash].js"
    assert pages["output"]["assetFileNames"] == "assets/[name]-[hash].[ext]"
    assert [entry["bundlePath"] for entry in pages["entrypoints"]] == [
        "iframe.html",
        "options.html",
        "popup.html",
        "renderer.html",
    ]

    content = describe_group(groups[0], config)
    assert content["strategy"] == "library"
    assert content["output"] == {
        "entryFileNames": "content-scripts/a.js",
        "assetFileNames": "content-scripts/a.[ext]",
    }

    standalone_css = describe_group(groups[4], config)
    assert standalone_css["strategy"] == "css"
    assert standalone_css["output"]["entryFileNames"] == "assets/theme.css"

    content_css = describe_group(groups[5], config)
    assert content_css["output"]["entryFileNames"] == "content-scripts/ui.css"
