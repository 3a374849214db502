"""Logical keys and reference constructors.

A logical key is ``<kind-prefix>-<slug>[-<slug>...]``.  It is the only
identity a draft has before the cloud provider assigns one, and it is what
the ``crossplane.io/composition-resource-name`` annotation carries, so the
format must never change between releases.
"""

from __future__ import annotations

import re

from api.exceptions import ConfigurationError
from api.models import KeyReference, LiteralReference, PrincipalType

DELIMITER = "-"

# Wider than spaces and hyphens: keys double as metadata.name, which must be a
# DNS-1123 label, so underscores, dots and "@" cannot survive either.
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

GROUP_PREFIX = "identity-center-group"
USER_PREFIX = "identity-center-user"
MEMBERSHIP_PREFIX = "identity-center-membership"
PERMISSION_SET_PREFIX = "permission-set"
INLINE_POLICY_PREFIX = "permission-set-inline-policy"
MANAGED_POLICY_PREFIX = "permission-set-managed-policy"
CUSTOMER_POLICY_PREFIX = "permission-set-customer-policy"
ASSIGNMENT_PREFIX = "account-assignment"


def slugify(name: str) -> str:
    """Lowercase *name* and collapse every run of non-alphanumerics to one ``-``.

    >>> slugify("Platform  Admins")
    'platform-admins'
    >>> slugify("jane.doe@example.com")
    'jane-doe-example-com'
    """
    slug = _NON_ALNUM.sub(DELIMITER, str(name).lower()).strip(DELIMITER)
    if not slug:
        raise ConfigurationError(f"Name {name!r} has no characters usable in a logical key")
    return slug


def logical_key(prefix: str, *parts: str) -> str:
    """Join *prefix* and the slugs of *parts* with the delimiter."""
    return DELIMITER.join([prefix, *(slugify(part) for part in parts)])


def group_key(name: str) -> str:
    return logical_key(GROUP_PREFIX, name)


def user_key(name: str) -> str:
    return logical_key(USER_PREFIX, name)


def principal_key(principal_type: PrincipalType, name: str) -> str:
    if principal_type is PrincipalType.GROUP:
        return group_key(name)
    return user_key(name)


def membership_key(user: str, group: str) -> str:
    return logical_key(MEMBERSHIP_PREFIX, user, group)


def permission_set_key(name: str) -> str:
    return logical_key(PERMISSION_SET_PREFIX, name)


def inline_policy_key(permission_set: str) -> str:
    return logical_key(INLINE_POLICY_PREFIX, permission_set)


def managed_policy_key(permission_set: str, policy_arn: str) -> str:
    """Key a managed-policy attachment by the policy's account and resource path.

    ``arn:aws:iam::aws:policy/ReadOnlyAccess`` and
    ``arn:aws:iam::123456789012:policy/ReadOnlyAccess`` share a name but
    are different policies, so both segments stay in the key.

    >>> managed_policy_key("Ops", "arn:aws:iam::aws:policy/ReadOnlyAccess")
    'permission-set-managed-policy-ops-aws-policy-readonlyaccess'
    """
    segments = policy_arn.split(":", 5)
    if len(segments) == 6 and segments[0] == "arn":
        policy = f"{segments[4]}/{segments[5]}"
    else:
        policy = policy_arn
    return logical_key(MANAGED_POLICY_PREFIX, permission_set, policy)


def customer_policy_key(permission_set: str, name: str, path: str = "/") -> str:
    """Key a customer-managed attachment; the default ``/`` path is omitted."""
    if path.strip("/"):
        return logical_key(CUSTOMER_POLICY_PREFIX, permission_set, path, name)
    return logical_key(CUSTOMER_POLICY_PREFIX, permission_set, name)


def assignment_key(permission_set: str, principal_type: PrincipalType, principal: str, account_id: str) -> str:
    return logical_key(
        ASSIGNMENT_PREFIX,
        permission_set,
        principal_type.value,
        principal,
        account_id,
    )


# ── References ───────────────────────────────────────────────────────────────


def key_ref(path: str, key: str, resolved: str | None = None) -> KeyReference:
    """Reference the draft keyed *key*, filling *resolved* once it is observed."""
    return KeyReference(path=path, key=key, resolved=resolved)


def literal_ref(path: str, value: str) -> LiteralReference:
    """Reference an identifier that already exists outside this pass."""
    return LiteralReference(path=path, value=value)
