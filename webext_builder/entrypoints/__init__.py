"""Entrypoint classification."""

from .discovery import find_entrypoints, list_entrypoint_files
from .kinds import KINDS, EntrypointKind, match_kind
from .loader import ChainedDefinitionLoader, DefinitionLoader, FrontmatterDefinitionLoader, MappingDefinitionLoader
from .models import Entrypoint, EntrypointGroup, group_key, group_members
from .naming import get_entrypoint_name, parse_entrypoint_path
from .resolver import is_active, resolve_per_browser_option

__all__ = [
    "ChainedDefinitionLoader",
    "DefinitionLoader",
    "Entrypoint",
    "EntrypointGroup",
    "EntrypointKind",
    "FrontmatterDefinitionLoader",
    "KINDS",
    "MappingDefinitionLoader",
    "find_entrypoints",
    "get_entrypoint_name",
    "group_key",
    "group_members",
    "is_active",
    "list_entrypoint_files",
    "match_kind",
    "parse_entrypoint_path",
    "resolve_per_browser_option",
]
