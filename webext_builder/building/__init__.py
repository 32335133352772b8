"""Grouping and bundler invocation."""

from .bundler import Bundler, CommandBundler, CopyBundler, build_bundler, describe_group
from .grouping import group_entrypoints
from .models import BuildOutput, BuildStepOutput, Chunk
from .public import copy_public_directory

__all__ = [
    "BuildOutput",
    "BuildStepOutput",
    "Bundler",
    "Chunk",
    "CommandBundler",
    "CopyBundler",
    "build_bundler",
    "copy_public_directory",
    "describe_group",
    "group_entrypoints",
]
