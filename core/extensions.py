"""
Extension-Point Renderer Module

Responsibility:
- Provide the stage slot reserved for external identity-provider federation

Two variants share the stage signature.  :class:`NoopFederationStage` is the
default and always drafts nothing.  :class:`StrictFederationStage` refuses a
composite that supplies an ``externalIdp`` block, for deployments that would
rather fail than silently ignore federation settings.
"""

from __future__ import annotations

from api.exceptions import UnresolvedExtensionError
from api.models import CompositeSpec, ResourceDraft
from core.context import RenderContext
from core.logger import IdentityCenterLogger
from core.observed import ObservedIndex

logger = IdentityCenterLogger.get_logger()


class FederationStage:
    """Base class for the federation stage; renders nothing."""

    name = "federation"

    def __call__(self, spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]:
        return []


class NoopFederationStage(FederationStage):
    """Accepts and ignores any ``externalIdp`` block."""

    def __call__(self, spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]:
        if spec.external_idp is not None:
            logger.debug(
                "externalIdp supplied; federation is not rendered",
                extra={"composite": context.composite_name},
            )
        return []


class StrictFederationStage(FederationStage):
    """Fails the pass when an enabled ``externalIdp`` block is supplied."""

    def __call__(self, spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]:
        if spec.external_idp is not None and spec.external_idp.enabled:
            raise UnresolvedExtensionError(
                "externalIdp is set but no federation renderer is available",
                key=context.composite_name,
            )
        return []


def federation_stage(strict: bool = False) -> FederationStage:
    """Return the federation variant selected by *strict*."""
    return StrictFederationStage() if strict else NoopFederationStage()
