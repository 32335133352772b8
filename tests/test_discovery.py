from __future__ import annotations

from pathlib import Path

import pytest

from webext_builder.entrypoints.discovery import find_entrypoints
from webext_builder.entrypoints.loader import ChainedDefinitionLoader, FrontmatterDefinitionLoader, MappingDefinitionLoader
from webext_builder.errors import ClassificationError, ConfigError
from webext_builder.schemas.options import ContentScriptOptions, PopupOptions

from conftest import CONTENT_FRONTMATTER, write

POPUP_HTML = """<!doctype html>
<html>
  <head>
    <title>Demo Popup</title>
    <meta name="manifest.default_icon" content="{'16': 'icon/16.png'}" />
    <meta name="manifest.mv2Key" content="page_action" />
  </head>
  <body></body>
</html>
"""


def _names(entrypoints) -> list[str]:
    return [entry.name for entry in entrypoints]


def test_discovers_entrypoints_in_path_order(project: Path, make_config) -> None:
    write(project, "entrypoints/popup.html", POPUP_HTML)
    write(project, "entrypoints/background.ts")
    write(project, "entrypoints/overlay.content.ts", CONTENT_FRONTMATTER)
    write(project, "entrypoints/popup/unused.txt")

    entrypoints = find_entrypoints(make_config())

    assert _names(entrypoints) == ["background", "overlay", "popup"]
    overlay = entrypoints[1]
    assert overlay.kind == "content-script"
    assert overlay.output_dir == make_config().out_dir / "content-scripts"
    assert isinstance(overlay.options, ContentScriptOptions)
    assert overlay.options.matches == ["*://*.example.com/*"]


def test_html_meta_tags_become_options(project: Path, make_config) -> None:
    write(project, "entrypoints/popup.html", POPUP_HTML)

    (popup,) = find_entrypoints(make_config())

    assert isinstance(popup.options, PopupOptions)
    assert popup.options.default_title == "Demo Popup"
    assert popup.options.default_icon == {"16": "icon/16.png"}
    assert popup.options.mv2_key == "page_action"


def test_unknown_file_at_root_is_fatal(project: Path, make_config) -> None:
    write(project, "entrypoints/notes.md", "# notes")

    with pytest.raises(ClassificationError) as excinfo:
        find_entrypoints(make_config())
    assert excinfo.value.path == "entrypoints/notes.md"


def test_unknown_file_in_subdirectory_is_skipped(project: Path, make_config, caplog) -> None:
    write(project, "entrypoints/popup/index.html", POPUP_HTML)
    write(project, "entrypoints/popup/notes.md", "# notes")

    with caplog.at_level("DEBUG", logger="webext_builder.entrypoints.discovery"):
        entrypoints = find_entrypoints(make_config())

    assert _names(entrypoints) == ["popup"]
    assert "popup/notes.md" in caplog.text


def test_include_and_exclude_is_a_config_error(project: Path, make_config) -> None:
    write(project, "entrypoints/injected.ts", "/* ---\ninclude: [chrome]\nexclude: [firefox]\n--- */\n")

    with pytest.raises(ConfigError) as excinfo:
        find_entrypoints(make_config())
    assert excinfo.value.path == "entrypoints/injected.ts"


def test_browser_filters_remove_entrypoints(project: Path, make_config) -> None:
    write(project, "entrypoints/chrome-only.ts", "/* ---\ninclude: [chrome]\n--- */\n")
    write(project, "entrypoints/not-firefox.html", '<meta name="manifest.exclude" content="[firefox]">')
    write(project, "entrypoints/everywhere.ts")

    assert _names(find_entrypoints(make_config(browser="chrome"))) == ["chrome-only", "everywhere", "not-firefox"]
    assert _names(find_entrypoints(make_config(browser="firefox"))) == ["everywhere"]


def test_per_browser_option_tables(project: Path, make_config) -> None:
    write(
        project,
        "entrypoints/overlay.content.ts",
        "/* ---\nmatches: ['*://*/*']\nrunAt:\n  firefox: document_start\n  chrome: document_idle\n--- */\n",
    )

    (chrome,) = find_entrypoints(make_config(browser="chrome"))
    (firefox,) = find_entrypoints(make_config(browser="firefox"))
    (safari,) = find_entrypoints(make_config(browser="safari"))

    assert chrome.options.run_at == "document_idle"
    assert firefox.options.run_at == "document_start"
    assert safari.options.run_at is None


def test_invalid_definition_is_a_config_error(project: Path, make_config) -> None:
    write(project, "entrypoints/overlay.content.ts", "/* ---\nrunAt: document_idle\n--- */\n")

    with pytest.raises(ConfigError) as excinfo:
        find_entrypoints(make_config())
    assert excinfo.value.path == "entrypoints/overlay.content.ts"
    assert "matches" in str(excinfo.value)


def test_duplicate_singletons_conflict(project: Path, make_config) -> None:
    write(project, "entrypoints/options.html")
    write(project, "entrypoints/options/index.html")

    with pytest.raises(ClassificationError):
        find_entrypoints(make_config())


def test_duplicate_names_conflict(project: Path, make_config) -> None:
    write(project, "entrypoints/shared.html")
    write(project, "entrypoints/shared.ts")

    with pytest.raises(ClassificationError) as excinfo:
        find_entrypoints(make_config())
    assert "shared" in str(excinfo.value)


def test_singleton_checked_after_filtering(project: Path, make_config) -> None:
    write(project, "entrypoints/newtab.html", '<meta name="manifest.include" content="[firefox]">')
    write(project, "entrypoints/newtab/index.html", '<meta name="manifest.exclude" content="[firefox]">')

    (newtab,) = find_entrypoints(make_config(browser="chrome"))
    assert newtab.relative_path == "newtab/index.html"


def test_filter_entrypoints(project: Path, make_config) -> None:
    write(project, "entrypoints/popup.html")
    write(project, "entrypoints/options.html")
    write(project, "entrypoints/background.ts")

    entrypoints = find_entrypoints(make_config(filter_entrypoints=["popup", "background"]))
    assert _names(entrypoints) == ["background", "popup"]


def test_config_definitions_override_frontmatter(project: Path, make_config) -> None:
    write(project, "entrypoints/overlay.content.ts", CONTENT_FRONTMATTER)

    config = make_config(entrypoints={"overlay": {"matches": ["https://example.org/*"], "allFrames": True}})
    (overlay,) = find_entrypoints(config)

    assert overlay.options.matches == ["https://example.org/*"]
    assert overlay.options.all_frames is True


def test_chained_loader_later_loaders_win(tmp_path: Path) -> None:
    path = write(tmp_path, "overlay.content.ts", CONTENT_FRONTMATTER)
    loader = ChainedDefinitionLoader(
        [
            FrontmatterDefinitionLoader(tmp_path),
            MappingDefinitionLoader({"overlay": {"world": "MAIN"}}),
            MappingDefinitionLoader({"overlay": {"world": "ISOLATED"}}),
        ]
    )

    assert loader.load(path, "content-script", "overlay") == {
        "matches": ["*://*.example.com/*"],
        "world": "ISOLATED",
    }


def test_invalid_frontmatter_is_a_config_error(tmp_path: Path) -> None:
    path = write(tmp_path, "background.ts", "/* ---\n- just\n- a list\n--- */\n")

    with pytest.raises(ConfigError):
        FrontmatterDefinitionLoader(tmp_path).load(path, "background", "background")


def test_meta_scalars_are_kept_as_literal_strings(project: Path, make_config) -> None:
    write(
        project,
        "entrypoints/popup.html",
        '<title>Ignored</title><meta name="manifest.default_title" content="Beta: build">',
    )
    write(project, "entrypoints/options.html", '<meta name="manifest.open_in_tab" content="true">')

    options, popup = find_entrypoints(make_config())

    assert popup.options.default_title == "Beta: build"
    assert options.options.open_in_tab is True


def test_meta_title_that_looks_like_a_yaml_boolean(project: Path, make_config) -> None:
    write(project, "entrypoints/popup.html", '<meta name="manifest.default_title" content="yes">')

    (popup,) = find_entrypoints(make_config())

    assert popup.options.default_title == "yes"


def test_unreadable_entrypoint_is_a_config_error(project: Path, make_config) -> None:
    (project / "entrypoints" / "options.html").write_bytes('<title>Optionen für</title>'.encode("latin-1"))

    with pytest.raises(ConfigError) as excinfo:
        find_entrypoints(make_config())
    assert excinfo.value.path == "entrypoints/options.html"
