"""Pydantic models for the project's ``webext.config.*`` file."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class BundlerSettings(BaseModel):
    name: str = "copy"
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class DevSettings(BaseModel):
    hostname: str = "localhost"
    port: int = 3000
    poll_interval: float = Field(default=0.25, gt=0)

    model_config = ConfigDict(extra="forbid")


class UserConfig(BaseModel):
    """Values a project may set in its config file. Paths are relative to the project root."""

    src_dir: Optional[str] = None
    entrypoints_dir: Optional[str] = None
    public_dir: Optional[str] = None
    out_dir: Optional[str] = None
    browser: Optional[str] = None
    manifest_version: Optional[Literal[2, 3]] = None
    mode: Optional[str] = None
    debug: Optional[bool] = None
    manifest: Dict[str, Any] = Field(default_factory=dict)
    filter_entrypoints: Optional[List[str]] = None
    entrypoints: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Entrypoint definitions keyed by entrypoint name.",
    )
    bundler: Optional[BundlerSettings] = None
    dev: Optional[DevSettings] = None

    model_config = ConfigDict(extra="forbid")
