"""Import identifiers (``crossplane.io/external-name``) for Identity Center resources.

Several ssoadmin resources are identified by a comma-joined tuple rather than
a single id.  These helpers build those strings for observe-only imports and
pull the resource's own identifier back out of an observed one.

Formats::

    PermissionSet                    PS_ARN,INSTANCE_ARN
    PermissionSetInlinePolicy        PS_ARN,INSTANCE_ARN
    ManagedPolicyAttachment          POLICY_ARN,PS_ARN,INSTANCE_ARN
    CustomerManagedPolicyAttachment  NAME,PATH,PS_ARN,INSTANCE_ARN
    AccountAssignment                PRINCIPAL_ID,PRINCIPAL_TYPE,PS_ARN,ACCOUNT_ID,INSTANCE_ARN
"""

from typing import Optional

SEPARATOR = ","

# Position of the resource's own identifier inside its external name.
_PRIMARY_SEGMENT: dict[str, int] = {
    "PermissionSet": 0,
}


def _join(*parts: Optional[str]) -> Optional[str]:
    if any(not part for part in parts):
        return None
    return SEPARATOR.join(parts)  # type: ignore[arg-type]


def permission_set(permission_set_arn: Optional[str], instance_arn: Optional[str]) -> Optional[str]:
    return _join(permission_set_arn, instance_arn)


def inline_policy(permission_set_arn: Optional[str], instance_arn: Optional[str]) -> Optional[str]:
    return _join(permission_set_arn, instance_arn)


def managed_policy_attachment(
    policy_arn: Optional[str],
    permission_set_arn: Optional[str],
    instance_arn: Optional[str],
) -> Optional[str]:
    return _join(policy_arn, permission_set_arn, instance_arn)


def customer_policy_attachment(
    name: Optional[str],
    path: Optional[str],
    permission_set_arn: Optional[str],
    instance_arn: Optional[str],
) -> Optional[str]:
    return _join(name, path, permission_set_arn, instance_arn)


def account_assignment(
    principal_id: Optional[str],
    principal_type: Optional[str],
    permission_set_arn: Optional[str],
    account_id: Optional[str],
    instance_arn: Optional[str],
) -> Optional[str]:
    """Return the assignment's external name, or ``None`` if any part is unknown."""
    return _join(principal_id, principal_type, permission_set_arn, account_id, instance_arn)


def primary_identifier(kind: str, external_name: Optional[str]) -> Optional[str]:
    """Extract the identifier a resource of *kind* is known by.

    Single-id kinds return *external_name* unchanged.  Composite kinds return
    the segment that names the resource itself (the permission-set ARN for
    ``PermissionSet``), or the whole string when it is not comma-joined.
    """
    if not external_name:
        return None
    position = _PRIMARY_SEGMENT.get(kind)
    if position is None or SEPARATOR not in external_name:
        return external_name
    segments = external_name.split(SEPARATOR)
    if position >= len(segments):
        return external_name
    return segments[position] or None
