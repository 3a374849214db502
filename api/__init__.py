"""Data contract of the render pipeline: pydantic models, document I/O, exceptions.

This package must NEVER import from ``core/``; the engine depends on it,
not the other way round.

Usage::

    from api import CompositeSpec, RenderRequest, ConfigurationError
    from api.documents import load_composite, load_observed, dump_output
"""

from api.exceptions import (
    ConfigurationError,
    PartialStateError,
    RenderError,
    UnresolvedExtensionError,
)
from api.models import (
    CompositeSpec,
    KeyReference,
    LiteralReference,
    PrincipalType,
    RenderOutput,
    RenderRequest,
    ResourceDraft,
    StatusSummary,
)

__all__ = [
    "CompositeSpec",
    "KeyReference",
    "LiteralReference",
    "PrincipalType",
    "RenderOutput",
    "RenderRequest",
    "ResourceDraft",
    "StatusSummary",
    "RenderError",
    "ConfigurationError",
    "PartialStateError",
    "UnresolvedExtensionError",
]
