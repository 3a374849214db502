"""
Context Builder Module

Responsibility:
- Give every optional composite field a concrete default
- Merge the tag layers (base < composite)
- Resolve the management mode from the management policies

Runs once per pass, before anything else.  The resulting RenderContext is
read-only and shared by reference with every later stage, so no stage ever
has to branch on "value present vs. absent".
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from api.exceptions import ConfigurationError
from api.models import CompositeSpec
from core.logger import IdentityCenterLogger

logger = IdentityCenterLogger.get_logger()

DEFAULT_MANAGEMENT_POLICIES: tuple[str, ...] = ("*",)
DEFAULT_REGION = "us-east-1"

BASE_TAGS: Mapping[str, str] = MappingProxyType({
    "managed-by": "crossplane",
    "component": "identity-center",
})

FULL_CONTROL = "FullControl"
OBSERVE_ONLY = "ObserveOnly"
PARTIAL = "Partial"


@dataclass(frozen=True)
class RenderContext:
    """Fully defaulted values shared by all stages of one pass."""

    composite_name: str
    organization_name: str
    management_policies: tuple[str, ...]
    management_mode: str
    provider_config_name: str
    region: str
    instance_arn: Optional[str]
    identity_store_id: Optional[str]
    tags: Mapping[str, str]

    @property
    def identity_store_enabled(self) -> bool:
        """Principals are only rendered when an identity store id is known."""
        return bool(self.identity_store_id)

    @property
    def observe_only(self) -> bool:
        return self.management_mode == OBSERVE_ONLY

    def require_instance_arn(self, purpose: str) -> str:
        """Return the instance ARN, or fail if *purpose* cannot render without it."""
        if not self.instance_arn:
            raise ConfigurationError(
                f"{purpose} declared but identityCenterInstance.arn is not set",
                key=self.composite_name,
            )
        return self.instance_arn

    def resource_tags(self, *overrides: Mapping[str, str]) -> dict[str, str]:
        """Return the composite tag map overwritten key-by-key by *overrides*.

        Later overrides win; nested values are not merged.
        """
        merged = dict(self.tags)
        for layer in overrides:
            merged.update(layer)
        return merged


def management_mode(policies: tuple[str, ...]) -> str:
    """Classify management policies as full control, observe-only or partial."""
    if "*" in policies:
        return FULL_CONTROL
    if policies == ("Observe",):
        return OBSERVE_ONLY
    return PARTIAL


def build_context(spec: CompositeSpec, default_region: str = DEFAULT_REGION) -> RenderContext:
    """Compute the :class:`RenderContext` for *spec*."""
    organization = spec.organization_name or spec.name
    policies = tuple(spec.management_policies) if spec.management_policies else DEFAULT_MANAGEMENT_POLICIES

    provider_config = spec.name
    if spec.provider_config_ref and spec.provider_config_ref.name:
        provider_config = spec.provider_config_ref.name

    tags = {**BASE_TAGS, "organization": organization}
    tags.update(spec.tags)

    context = RenderContext(
        composite_name=spec.name,
        organization_name=organization,
        management_policies=policies,
        management_mode=management_mode(policies),
        provider_config_name=provider_config,
        region=spec.region or default_region,
        instance_arn=spec.instance.arn if spec.instance else None,
        identity_store_id=spec.identity_store.id if spec.identity_store else None,
        tags=MappingProxyType(tags),
    )
    logger.debug(
        "Render context built",
        extra={
            "composite": context.composite_name,
            "organization": context.organization_name,
            "management_mode": context.management_mode,
            "provider_config": context.provider_config_name,
            "identity_store_enabled": context.identity_store_enabled,
        },
    )
    return context
