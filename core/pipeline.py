"""
Render Pipeline Module

Responsibility:
- Run one complete render pass: context -> observed index -> stages ->
  integrity checks -> status
- Return a complete RenderOutput or raise a RenderError, never both

The pass is synchronous, keeps no state between calls and never touches
the network.  Drafts live in a local list until every stage and check has
succeeded, so a failure can never leak a half-rendered topology.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from api.exceptions import ConfigurationError, RenderError
from api.models import CompositeSpec, KeyReference, LiteralReference, RenderOutput, RenderRequest, ResourceDraft
from core.assignments import render_assignments
from core.context import DEFAULT_REGION, build_context
from core.extensions import federation_stage
from core.logger import IdentityCenterLogger
from core.observed import index_observed
from core.permission_sets import render_permission_sets
from core.principals import render_principals
from core.stages import StageEntry, StagePlan
from core.status import aggregate_status

logger = IdentityCenterLogger.get_logger()


def build_plan(strict_extensions: bool = False) -> StagePlan:
    """Return the standard stage order.

    *strict_extensions* selects the federation variant that rejects an
    ``externalIdp`` block instead of ignoring it.
    """
    return StagePlan([
        StageEntry("principals", "Identity-store groups, users and memberships", render_principals),
        StageEntry("permission_sets", "Permission sets and policy attachments", render_permission_sets),
        StageEntry("assignments", "Account assignments", render_assignments),
        StageEntry("federation", "External identity-provider federation (reserved)", federation_stage(strict_extensions)),
    ])


DEFAULT_PLAN = build_plan()


def render(
    request: Union[RenderRequest, Mapping[str, Any]],
    *,
    plan: Optional[StagePlan] = None,
    default_region: str = DEFAULT_REGION,
) -> RenderOutput:
    """Render *request* into the desired drafts and a status summary.

    Raises:
        ConfigurationError: the composite is internally inconsistent.
        UnresolvedExtensionError: the strict federation variant rejected the composite.
        pydantic.ValidationError: *request* is a mapping that does not fit the schema.
    """
    if not isinstance(request, RenderRequest):
        request = RenderRequest.model_validate(request)

    spec = request.spec
    context = build_context(spec, default_region)
    observed = index_observed(request.observed)
    logger.info(
        "Render started",
        extra={"composite": context.composite_name, "observed_count": len(observed)},
    )

    try:
        drafts = (plan or DEFAULT_PLAN).run(spec, context, observed)
        check_unique_keys(drafts)
        check_references(drafts)
    except RenderError as exc:
        logger.error(
            "Render failed",
            extra={"composite": context.composite_name, "error": exc.reason, "key": exc.key},
        )
        raise

    status = aggregate_status(spec, context, observed)
    logger.info(
        "Render finished",
        extra={
            "composite": context.composite_name,
            "draft_count": len(drafts),
            "ignored_observed": status.ignored_observed,
        },
    )
    return RenderOutput(resources=drafts, status=status)


def render_composite(
    document: Mapping[str, Any],
    observed: Optional[Iterable[Any]] = None,
    **kwargs: Any,
) -> RenderOutput:
    """Render a full composite resource document (``metadata`` + ``spec``)."""
    spec = CompositeSpec.from_composite(dict(document))
    return render(RenderRequest(spec=spec, observed=list(observed or [])), **kwargs)


def check_unique_keys(drafts: list[ResourceDraft]) -> None:
    """Fail if two drafts share a logical key; collisions are never merged."""
    kinds_by_key: dict[str, str] = {}
    for draft in drafts:
        if draft.key in kinds_by_key:
            raise ConfigurationError(
                f"Logical key produced twice ({kinds_by_key[draft.key]} and {draft.kind}); "
                "check for names that differ only in case or punctuation",
                key=draft.key,
            )
        kinds_by_key[draft.key] = draft.kind


def check_references(drafts: list[ResourceDraft]) -> None:
    """Fail if any reference points at no draft of this pass and carries no literal."""
    keys = {draft.key for draft in drafts}
    for draft in drafts:
        for reference in draft.references:
            if isinstance(reference, KeyReference) and reference.key not in keys:
                raise ConfigurationError(
                    f"{draft.kind} references {reference.key!r}, which no stage drafted",
                    key=draft.key,
                )
            if isinstance(reference, LiteralReference) and not reference.value:
                raise ConfigurationError(
                    f"{draft.kind} has an empty literal for {reference.path}",
                    key=draft.key,
                )
