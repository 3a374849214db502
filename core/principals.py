"""
Principal Renderer Module

Responsibility:
- Draft one identity-store Group per declared group
- Draft one identity-store User per declared user
- Draft one GroupMembership per distinct (user, group) pair

Gated on the identity-store id: without one, this stage emits nothing and
assignments fall back to literal principal identifiers.  Memberships
reference both principals by logical key, because on first creation
neither has an identifier yet.
"""

from __future__ import annotations

import re

from api.exceptions import ConfigurationError
from api.models import CompositeSpec, GroupSpec, ResourceDraft, UserSpec
from core.context import RenderContext
from core.drafts import IDENTITYSTORE_API, build_draft
from core.keys import group_key, key_ref, literal_ref, membership_key, user_key
from core.logger import IdentityCenterLogger
from core.observed import ObservedIndex

logger = IdentityCenterLogger.get_logger()

# Identity-store principal id, optionally prefixed with the store's 10-hex id.
GROUP_ID_PATTERN = re.compile(
    r"^([0-9a-f]{10}-)?[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_principal_id(value: str) -> bool:
    """Return True if *value* looks like an identity-store group/user id."""
    return bool(GROUP_ID_PATTERN.match(value))


def render_principals(spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]:
    """Draft groups, users and memberships for *spec*."""
    if not context.identity_store_enabled:
        if spec.groups or spec.users:
            logger.info(
                "No identity store id; skipping principals",
                extra={"group_count": len(spec.groups), "user_count": len(spec.users)},
            )
        return []

    drafts: list[ResourceDraft] = []
    drafts.extend(_group_draft(group, context) for group in spec.groups)
    drafts.extend(_user_draft(user, context) for user in spec.users)

    declared_groups = {group.name for group in spec.groups}
    seen: set[str] = set()
    for user in spec.users:
        for group_name in user.groups:
            # Every entry is validated, including ones that collapse into an earlier membership.
            draft = _membership_draft(user, group_name, declared_groups, context, observed)
            if draft.key in seen:
                logger.debug("Collapsing repeated membership", extra={"key": draft.key})
                continue
            seen.add(draft.key)
            drafts.append(draft)

    logger.debug("Principals rendered", extra={"stage": "principals", "draft_count": len(drafts)})
    return drafts


def _group_draft(group: GroupSpec, context: RenderContext) -> ResourceDraft:
    for_provider = {
        "identityStoreId": context.identity_store_id,
        "displayName": group.display_name or group.name,
    }
    if group.description:
        for_provider["description"] = group.description
    return build_draft(
        context,
        kind="Group",
        api_version=IDENTITYSTORE_API,
        key=group_key(group.name),
        for_provider=for_provider,
        tags=context.resource_tags(group.tags),
        external_name=group.external_name,
    )


def _user_draft(user: UserSpec, context: RenderContext) -> ResourceDraft:
    display_name = user.display_name or user.name
    words = display_name.split() or [user.name]
    for_provider = {
        "identityStoreId": context.identity_store_id,
        "userName": user.name,
        "displayName": display_name,
        "name": [{
            "givenName": user.given_name or words[0],
            "familyName": user.family_name or words[-1],
        }],
    }
    if user.email:
        for_provider["emails"] = [{"value": user.email, "primary": True}]
    return build_draft(
        context,
        kind="User",
        api_version=IDENTITYSTORE_API,
        key=user_key(user.name),
        for_provider=for_provider,
        tags=context.resource_tags(user.tags),
        external_name=user.external_name,
    )


def _membership_draft(
    user: UserSpec,
    group_name: str,
    declared_groups: set[str],
    context: RenderContext,
    observed: ObservedIndex,
) -> ResourceDraft:
    key = membership_key(user.name, group_name)

    if group_name in declared_groups:
        target = group_key(group_name)
        group_ref = key_ref("spec.forProvider.groupId", target, observed.identifier(target))
    elif is_principal_id(group_name):
        group_ref = literal_ref("spec.forProvider.groupId", group_name)
    else:
        raise ConfigurationError(
            f"User {user.name!r} is a member of group {group_name!r}, "
            "which is neither declared nor a valid group id",
            key=key,
        )

    member = user_key(user.name)
    member_ref = key_ref("spec.forProvider.memberId", member, observed.identifier(member))

    return build_draft(
        context,
        kind="GroupMembership",
        api_version=IDENTITYSTORE_API,
        key=key,
        for_provider={"identityStoreId": context.identity_store_id},
        references=(group_ref, member_ref),
        tags=context.resource_tags(user.tags),
    )
