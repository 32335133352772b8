from __future__ import annotations

from pathlib import Path

import pytest

from webext_builder.entrypoints.discovery import list_entrypoint_files
from webext_builder.entrypoints.kinds import KINDS, SINGLETON_KINDS, match_kind
from webext_builder.entrypoints.naming import get_entrypoint_name, is_hidden, parse_entrypoint_path
from webext_builder.errors import ClassificationError

from conftest import write


@pytest.mark.parametrize(
    ("relative", "kind", "name"),
    [
        ("popup.html", "popup", "popup"),
        ("popup/index.html", "popup", "popup"),
        ("options.html", "options", "options"),
        ("devtools.html", "devtools", "devtools"),
        ("newtab/index.html", "newtab", "newtab"),
        ("bookmarks.html", "bookmarks", "bookmarks"),
        ("history.html", "history", "history"),
        ("sandbox.html", "sandbox", "sandbox"),
        ("renderer.sandbox.html", "sandbox", "renderer"),
        ("sidepanel.html", "sidepanel", "sidepanel"),
        ("left.sidepanel/index.html", "sidepanel", "left"),
        ("background.ts", "background", "background"),
        ("background/index.js", "background", "background"),
        ("content.ts", "content-script", "content"),
        ("overlay.content.tsx", "content-script", "overlay"),
        ("one.content/index.ts", "content-script", "one"),
        ("overlay.content.css", "content-script-style", "overlay"),
        ("welcome-page.html", "unlisted-page", "welcome-page"),
        ("injected.ts", "unlisted-script", "injected"),
        ("helpers/index.mjs", "unlisted-script", "helpers"),
        ("theme.css", "unlisted-style", "theme"),
        ("theme.scss", "unlisted-style", "theme"),
    ],
)
def test_parse_entrypoint_path(tmp_path: Path, relative: str, kind: str, name: str) -> None:
    parsed = parse_entrypoint_path(tmp_path, tmp_path / relative)
    assert parsed.kind.name == kind
    assert parsed.name == name
    assert parsed.relative_path == relative


def test_name_is_prefix_up_to_first_dot_or_separator(tmp_path: Path) -> None:
    assert get_entrypoint_name(tmp_path, tmp_path / "my.page.html") == "my"
    assert get_entrypoint_name(tmp_path, tmp_path / "my-page/index.html") == "my-page"


def test_unknown_file_raises_classification_error(tmp_path: Path) -> None:
    with pytest.raises(ClassificationError) as excinfo:
        parse_entrypoint_path(tmp_path, tmp_path / "README.md")
    assert excinfo.value.path == "README.md"


def test_files_inside_entrypoint_directories_do_not_classify() -> None:
    assert match_kind("popup/helper.ts") is None
    assert match_kind("one.content/style.css") is None


def test_hidden_paths_are_never_listed(tmp_path: Path) -> None:
    write(tmp_path, "popup.html")
    write(tmp_path, ".secret.html")
    write(tmp_path, ".drafts/options.html")
    write(tmp_path, "overlay.content/.cache/index.ts")

    files = [path.relative_to(tmp_path).as_posix() for path in list_entrypoint_files(tmp_path)]
    assert files == ["popup.html"]
    assert is_hidden("a/.b/c.ts")
    assert not is_hidden("a/b.c/d.ts")


def test_singleton_kinds() -> None:
    assert SINGLETON_KINDS == {"background", "popup", "options", "devtools", "newtab"}
    assert KINDS["content-script"].output_subdir == "content-scripts"
    assert KINDS["unlisted-style"].output_subdir == "assets"
