"""Package metadata read from the project's ``package.json``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ConfigError

PACKAGE_FILENAME = "package.json"


class PackageMetadata(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    short_name: Optional[str] = Field(default=None, alias="shortName")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def require(self) -> "PackageMetadata":
        for field_name in ("name", "description", "version"):
            if getattr(self, field_name) is None:
                raise ConfigError(f"package.json does not include a {field_name}", path=PACKAGE_FILENAME)
        return self


def load_package_metadata(root: Path) -> PackageMetadata:
    path = root / PACKAGE_FILENAME
    if not path.exists():
        raise ConfigError("Package metadata file not found", path=PACKAGE_FILENAME)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return PackageMetadata.model_validate(payload)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid package metadata: {exc}", path=PACKAGE_FILENAME) from exc
