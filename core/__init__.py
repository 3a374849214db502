"""Core render engine: context, observed index, stages, status, logging.

This package never performs I/O beyond logging; documents are read and
written by ``api.documents`` and the CLI.
"""

from core.logger import IdentityCenterLogger
from core.pipeline import DEFAULT_PLAN, build_plan, render, render_composite

__all__ = [
    "IdentityCenterLogger",
    "DEFAULT_PLAN",
    "build_plan",
    "render",
    "render_composite",
]
