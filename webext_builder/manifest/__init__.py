"""Manifest assembly helpers."""

from .assembler import CONTRIBUTORS, ManifestAssembler, content_script_signature, simplify_version
from .csp import ContentSecurityPolicy
from .package import PackageMetadata, load_package_metadata
from .writer import serialize_manifest, write_manifest

__all__ = [
    "CONTRIBUTORS",
    "ContentSecurityPolicy",
    "ManifestAssembler",
    "PackageMetadata",
    "content_script_signature",
    "load_package_metadata",
    "serialize_manifest",
    "simplify_version",
    "write_manifest",
]
