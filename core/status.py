"""
Status Aggregator Module

Responsibility:
- Fold the observed index back into a StatusSummary for the caller
- Report each principal, permission set and assignment as pending, ready
  or unready, with its identifier once one is known

Keys are recomputed from the composite, never taken from the drafts, so a
resource that has not been observed yet is reported as "pending" rather
than disappearing.  This stage never fails.
"""

from __future__ import annotations

from api.models import CompositeSpec, ResourceStatus, StatusSummary
from core.assignments import expand_assignments
from core.context import RenderContext
from core.keys import group_key, permission_set_key, user_key
from core.logger import IdentityCenterLogger
from core.observed import ObservedIndex

logger = IdentityCenterLogger.get_logger()

_INSTANCE_SOURCES = (
    "PermissionSet",
    "AccountAssignment",
    "PermissionSetInlinePolicy",
    "ManagedPolicyAttachment",
    "CustomerManagedPolicyAttachment",
)
_IDENTITY_STORE_SOURCES = ("Group", "User", "GroupMembership")


def resource_status(kind: str, name: str, key: str, observed: ObservedIndex) -> ResourceStatus:
    """Return the readiness of the resource keyed *key*."""
    entry = observed.get(key)
    if entry is None:
        return ResourceStatus(kind=kind, name=name, state="pending")
    return ResourceStatus(
        kind=kind,
        name=name,
        state="ready" if entry.ready else "unready",
        ready=entry.ready,
        id=entry.external_id,
    )


def aggregate_status(spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> StatusSummary:
    """Build the :class:`StatusSummary` for *spec* from *observed*."""
    principals: dict[str, ResourceStatus] = {}
    if context.identity_store_enabled:
        for group in spec.groups:
            principals[group_key(group.name)] = resource_status("Group", group.name, group_key(group.name), observed)
        for user in spec.users:
            principals[user_key(user.name)] = resource_status("User", user.name, user_key(user.name), observed)

    permission_sets = {
        permission_set_key(permission_set.name): resource_status(
            "PermissionSet", permission_set.name, permission_set_key(permission_set.name), observed,
        )
        for permission_set in spec.permission_sets
    }

    assignments: dict[str, ResourceStatus] = {}
    for assignment in expand_assignments(spec):
        name = "/".join((
            assignment.permission_set,
            assignment.principal_type.value,
            assignment.principal,
            assignment.account_id,
        ))
        assignments[assignment.key] = resource_status("AccountAssignment", name, assignment.key, observed)

    summary = StatusSummary(
        instance_arn=context.instance_arn or observed.first_at_provider("instanceArn", _INSTANCE_SOURCES),
        identity_store_id=(
            context.identity_store_id or observed.first_at_provider("identityStoreId", _IDENTITY_STORE_SOURCES)
        ),
        management_mode=context.management_mode,
        management_policies=list(context.management_policies),
        principals=principals,
        permission_sets=permission_sets,
        assignments=assignments,
        ignored_observed=len(observed.degraded),
    )

    pending = sum(
        1
        for entry in (*principals.values(), *permission_sets.values(), *assignments.values())
        if entry.state == "pending"
    )
    logger.debug(
        "Status aggregated",
        extra={"composite": context.composite_name, "pending_count": pending, "observed_count": len(observed)},
    )
    return summary
