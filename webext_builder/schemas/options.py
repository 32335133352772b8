"""Pydantic models describing the options each entrypoint kind accepts."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class BaseEntrypointOptions(BaseModel):
    include: Optional[List[str]] = Field(default=None, description="Only build for these browsers.")
    exclude: Optional[List[str]] = Field(default=None, description="Never build for these browsers.")

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BackgroundOptions(BaseEntrypointOptions):
    kind: Literal["background"] = "background"
    persistent: Optional[bool] = None
    type: Optional[Literal["module"]] = None


class ContentScriptOptions(BaseEntrypointOptions):
    kind: Literal["content-script"] = "content-script"
    matches: List[str]
    run_at: Optional[Literal["document_start", "document_end", "document_idle"]] = None
    match_about_blank: Optional[bool] = None
    exclude_matches: Optional[List[str]] = None
    include_globs: Optional[List[str]] = None
    exclude_globs: Optional[List[str]] = None
    all_frames: Optional[bool] = None
    match_origin_as_fallback: Optional[bool] = None
    world: Optional[Literal["ISOLATED", "MAIN"]] = None

    def manifest_fields(self) -> Dict[str, Any]:
        """Declared options using manifest key names, without browser filters."""

        return self.model_dump(
            exclude_unset=True,
            exclude_none=True,
            exclude={"kind", "include", "exclude"},
        )


class PopupOptions(BaseEntrypointOptions):
    kind: Literal["popup"] = "popup"
    mv2_key: Optional[Literal["browser_action", "page_action"]] = None
    default_icon: Optional[Dict[str, str]] = None
    default_title: Optional[str] = None


class OptionsPageOptions(BaseEntrypointOptions):
    kind: Literal["options"] = "options"
    open_in_tab: Optional[bool] = None
    browser_style: Optional[bool] = None
    chrome_style: Optional[bool] = None


class GenericOptions(BaseEntrypointOptions):
    kind: Literal[
        "sandbox",
        "bookmarks",
        "history",
        "newtab",
        "sidepanel",
        "devtools",
        "unlisted-page",
        "unlisted-script",
        "unlisted-style",
        "content-script-style",
    ]


EntrypointOptions = Annotated[
    Union[
        BackgroundOptions,
        ContentScriptOptions,
        PopupOptions,
        OptionsPageOptions,
        GenericOptions,
    ],
    Field(discriminator="kind"),
]

_OPTIONS_ADAPTER: TypeAdapter[EntrypointOptions] = TypeAdapter(EntrypointOptions)

# Mapping-valued options that must never be treated as per-browser tables.
PER_BROWSER_EXEMPT = frozenset({"include", "exclude", "default_icon", "defaultIcon"})


def parse_options(kind: str, definition: Mapping[str, Any]) -> BaseEntrypointOptions:
    """Validate an evaluated definition against the option model for ``kind``."""

    payload = dict(definition)
    payload["kind"] = kind
    return _OPTIONS_ADAPTER.validate_python(payload)
