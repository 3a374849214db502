"""
Permission-Set Renderer Module

Responsibility:
- Draft one PermissionSet per declared permission set
- Draft each policy attachment as its own sibling resource:
  PermissionSetInlinePolicy, ManagedPolicyAttachment (one per ARN),
  CustomerManagedPolicyAttachment (one per name+path)

Attachments reference their permission set by logical key so the caller's
diff stays granular: changing one managed policy touches one draft.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Union

from api.models import CompositeSpec, KeyReference, PermissionSetSpec, ResourceDraft
from core import external_names
from core.context import RenderContext
from core.drafts import SSOADMIN_API, build_draft
from core.keys import (
    customer_policy_key,
    inline_policy_key,
    key_ref,
    managed_policy_key,
    permission_set_key,
)
from core.logger import IdentityCenterLogger
from core.observed import ObservedIndex

logger = IdentityCenterLogger.get_logger()

PERMISSION_SET_ARN_PATH = "spec.forProvider.permissionSetArn"


def render_permission_sets(spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]:
    """Draft every permission set in *spec* together with its attachments."""
    if not spec.permission_sets:
        return []
    instance_arn = context.require_instance_arn("Permission sets")

    drafts: list[ResourceDraft] = []
    for permission_set in spec.permission_sets:
        drafts.extend(_permission_set_drafts(permission_set, instance_arn, context, observed))

    logger.debug("Permission sets rendered", extra={"stage": "permission_sets", "draft_count": len(drafts)})
    return drafts


def normalise_policy_document(document: Union[str, Mapping[str, Any]]) -> str:
    """Return *document* as a JSON string; mappings are dumped with sorted keys."""
    if isinstance(document, str):
        return document
    return json.dumps(document, sort_keys=True)


def _permission_set_drafts(
    permission_set: PermissionSetSpec,
    instance_arn: str,
    context: RenderContext,
    observed: ObservedIndex,
) -> list[ResourceDraft]:
    key = permission_set_key(permission_set.name)
    tags = context.resource_tags(permission_set.tags)
    permission_set_arn = observed.identifier(key)
    import_names = context.observe_only

    for_provider: dict[str, Any] = {
        "instanceArn": instance_arn,
        "name": permission_set.name,
        "sessionDuration": permission_set.session_duration,
    }
    if permission_set.description:
        for_provider["description"] = permission_set.description
    if permission_set.relay_state:
        for_provider["relayState"] = permission_set.relay_state

    drafts = [
        build_draft(
            context,
            kind="PermissionSet",
            api_version=SSOADMIN_API,
            key=key,
            for_provider=for_provider,
            tags=tags,
            taggable=True,
            external_name=permission_set.external_name or (
                external_names.permission_set(permission_set_arn, instance_arn) if import_names else None
            ),
        )
    ]

    def parent_ref() -> KeyReference:
        return key_ref(PERMISSION_SET_ARN_PATH, key, permission_set_arn)

    if permission_set.inline_policy:
        drafts.append(build_draft(
            context,
            kind="PermissionSetInlinePolicy",
            api_version=SSOADMIN_API,
            key=inline_policy_key(permission_set.name),
            for_provider={
                "instanceArn": instance_arn,
                "inlinePolicy": normalise_policy_document(permission_set.inline_policy),
            },
            references=(parent_ref(),),
            tags=tags,
            external_name=(
                external_names.inline_policy(permission_set_arn, instance_arn) if import_names else None
            ),
        ))

    for policy_arn in dict.fromkeys(permission_set.managed_policies):
        drafts.append(build_draft(
            context,
            kind="ManagedPolicyAttachment",
            api_version=SSOADMIN_API,
            key=managed_policy_key(permission_set.name, policy_arn),
            for_provider={"instanceArn": instance_arn, "managedPolicyArn": policy_arn},
            references=(parent_ref(),),
            tags=tags,
            external_name=(
                external_names.managed_policy_attachment(policy_arn, permission_set_arn, instance_arn)
                if import_names else None
            ),
        ))

    seen_customer: set[tuple[str, str]] = set()
    for policy in permission_set.customer_managed_policies:
        if (policy.name, policy.path) in seen_customer:
            continue
        seen_customer.add((policy.name, policy.path))
        drafts.append(build_draft(
            context,
            kind="CustomerManagedPolicyAttachment",
            api_version=SSOADMIN_API,
            key=customer_policy_key(permission_set.name, policy.name, policy.path),
            for_provider={
                "instanceArn": instance_arn,
                "customerManagedPolicyReference": [{"name": policy.name, "path": policy.path}],
            },
            references=(parent_ref(),),
            tags=tags,
            external_name=(
                external_names.customer_policy_attachment(
                    policy.name, policy.path, permission_set_arn, instance_arn,
                )
                if import_names else None
            ),
        ))

    return drafts
