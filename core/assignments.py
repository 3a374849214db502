"""
Assignment Renderer Module

Responsibility:
- Expand each permission set's assignment targets into individual
  (account, principal) assignments: assignToAccounts x (assignToGroups + assignToUsers)
- Append the legacy explicit assignment tuples 1:1, bypassing the expansion
- Deduplicate across both paths by (principal, type, permission set, account)
- Draft one AccountAssignment per resulting assignment

:func:`expand_assignments` depends on the composite alone so the status
aggregator can recompute the same keys without looking at any draft.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from api.exceptions import ConfigurationError
from api.models import (
    CompositeSpec,
    KeyReference,
    LiteralReference,
    PermissionSetSpec,
    PrincipalType,
    ResourceDraft,
)
from core import external_names
from core.context import RenderContext
from core.drafts import SSOADMIN_API, build_draft
from core.keys import assignment_key, key_ref, literal_ref, permission_set_key, principal_key
from core.logger import IdentityCenterLogger
from core.observed import ObservedIndex

logger = IdentityCenterLogger.get_logger()

EXPANSION = "expansion"
LEGACY = "legacy"

PRINCIPAL_ID_PATH = "spec.forProvider.principalId"
PERMISSION_SET_ARN_PATH = "spec.forProvider.permissionSetArn"
TARGET_TYPE = "AWS_ACCOUNT"


@dataclass(frozen=True)
class Assignment:
    """One (principal, permission set, account) binding."""

    principal: str
    principal_type: PrincipalType
    permission_set: str
    account_id: str
    source: str = EXPANSION

    @property
    def identity(self) -> tuple[str, PrincipalType, str, str]:
        return (self.principal, self.principal_type, self.permission_set, self.account_id)

    @property
    def key(self) -> str:
        return assignment_key(self.permission_set, self.principal_type, self.principal, self.account_id)


def expand_assignments(spec: CompositeSpec) -> list[Assignment]:
    """Return every assignment *spec* asks for, first occurrence wins.

    Expansion order is permission set, then account, then groups before
    users, then the legacy tuples in declaration order.
    """
    assignments: list[Assignment] = []
    seen: set[tuple[str, PrincipalType, str, str]] = set()

    def add(assignment: Assignment) -> None:
        if assignment.identity in seen:
            logger.debug("Dropping duplicate assignment", extra={"key": assignment.key, "source": assignment.source})
            return
        seen.add(assignment.identity)
        assignments.append(assignment)

    for permission_set in spec.permission_sets:
        principals = [(PrincipalType.GROUP, name) for name in permission_set.assign_to_groups]
        principals += [(PrincipalType.USER, name) for name in permission_set.assign_to_users]
        for account_id in permission_set.assign_to_accounts:
            for principal_type, principal in principals:
                add(Assignment(principal, principal_type, permission_set.name, account_id, EXPANSION))

    for legacy in spec.assignments:
        add(Assignment(
            legacy.principal,
            legacy.principal_type,
            legacy.permission_set,
            legacy.account_id,
            LEGACY,
        ))

    return assignments


def render_assignments(spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]:
    """Draft one AccountAssignment per expanded assignment."""
    assignments = expand_assignments(spec)
    if not assignments:
        return []
    instance_arn = context.require_instance_arn("Account assignments")

    declared_principals = {
        PrincipalType.GROUP: {group.name for group in spec.groups},
        PrincipalType.USER: {user.name for user in spec.users},
    }
    permission_sets = {permission_set.name: permission_set for permission_set in spec.permission_sets}

    drafts = [
        _assignment_draft(assignment, instance_arn, declared_principals, permission_sets, context, observed)
        for assignment in assignments
    ]
    logger.debug("Assignments rendered", extra={"stage": "assignments", "draft_count": len(drafts)})
    return drafts


def _assignment_draft(
    assignment: Assignment,
    instance_arn: str,
    declared_principals: dict[PrincipalType, set[str]],
    permission_sets: dict[str, PermissionSetSpec],
    context: RenderContext,
    observed: ObservedIndex,
) -> ResourceDraft:
    key = assignment.key

    principal_ref: Union[KeyReference, LiteralReference]
    if context.identity_store_enabled and assignment.principal in declared_principals[assignment.principal_type]:
        target = principal_key(assignment.principal_type, assignment.principal)
        principal_ref = key_ref(PRINCIPAL_ID_PATH, target, observed.identifier(target))
    else:
        principal_ref = literal_ref(PRINCIPAL_ID_PATH, assignment.principal)

    permission_set_ref: Union[KeyReference, LiteralReference]
    permission_set = permission_sets.get(assignment.permission_set)
    if permission_set is not None:
        target = permission_set_key(permission_set.name)
        permission_set_ref = key_ref(PERMISSION_SET_ARN_PATH, target, observed.identifier(target))
        tags = context.resource_tags(permission_set.tags)
    elif assignment.permission_set.startswith("arn:"):
        permission_set_ref = literal_ref(PERMISSION_SET_ARN_PATH, assignment.permission_set)
        tags = context.resource_tags()
    else:
        raise ConfigurationError(
            f"Assignment references permission set {assignment.permission_set!r}, "
            "which is neither declared nor a permission-set ARN",
            key=key,
        )

    external_name = None
    if context.observe_only:
        external_name = external_names.account_assignment(
            _reference_value(principal_ref),
            assignment.principal_type.value,
            _reference_value(permission_set_ref),
            assignment.account_id,
            instance_arn,
        )

    return build_draft(
        context,
        kind="AccountAssignment",
        api_version=SSOADMIN_API,
        key=key,
        for_provider={
            "instanceArn": instance_arn,
            "principalType": assignment.principal_type.value,
            "targetId": assignment.account_id,
            "targetType": TARGET_TYPE,
        },
        references=(principal_ref, permission_set_ref),
        tags=tags,
        external_name=external_name,
    )


def _reference_value(reference: Union[KeyReference, LiteralReference]) -> Optional[str]:
    if isinstance(reference, LiteralReference):
        return reference.value
    return reference.resolved
