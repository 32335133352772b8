"""Build passes and development sessions."""

from .dev import DevSession
from .orchestrator import Pipeline, PipelineState, affected_group_keys, build_summary

__all__ = [
    "DevSession",
    "Pipeline",
    "PipelineState",
    "affected_group_keys",
    "build_summary",
]
