"""Pydantic data models for the Identity Center composite and its render output.

Input side: :class:`CompositeSpec` (what the caller declares) and
:class:`ObservedResource` (what the caller has seen in the cluster).
Output side: :class:`ResourceDraft` (one desired managed resource) and
:class:`StatusSummary`, wrapped together in :class:`RenderOutput`.

All models speak camelCase on the wire, matching the composite's YAML.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Shared configuration: camelCase aliases, population by field name."""

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class _SpecModel(_WireModel):
    """Immutable caller input."""

    model_config = {"populate_by_name": True, "alias_generator": to_camel, "frozen": True}


def _as_string_map(value: Any) -> Any:
    if value is None:
        return {}
    if isinstance(value, dict):
        return {str(k): str(v) for k, v in value.items()}
    return value


def _as_string_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return value


class PrincipalType(str, Enum):
    """Identity-store principal kinds an assignment can target."""

    GROUP = "GROUP"
    USER = "USER"


# ── Composite spec ───────────────────────────────────────────────────────────


class ProviderConfigRef(_SpecModel):
    """Reference to the provider-aws ``ProviderConfig`` used by every draft."""

    name: Optional[str] = None


class IdentityCenterInstance(_SpecModel):
    """The IAM Identity Center instance permission sets live in."""

    arn: Optional[str] = None


class IdentityStoreRef(_SpecModel):
    """The identity store principals are created in."""

    id: Optional[str] = None


class GroupSpec(_SpecModel):
    """A group to create in the identity store."""

    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    external_name: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value: Any) -> Any:
        return _as_string_map(value)


class UserSpec(_SpecModel):
    """A user to create in the identity store, with its group memberships."""

    name: str
    display_name: Optional[str] = None
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    email: Optional[str] = None
    groups: List[str] = Field(default_factory=list)
    external_name: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("groups", mode="before")
    @classmethod
    def coerce_groups(cls, value: Any) -> Any:
        return _as_string_list(value)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value: Any) -> Any:
        return _as_string_map(value)


class CustomerManagedPolicyRef(_SpecModel):
    """A customer-managed IAM policy attached by name and path (not ARN)."""

    name: str
    path: str = "/"


class PermissionSetSpec(_SpecModel):
    """A permission set, its policy attachments and its assignment targets."""

    name: str
    description: Optional[str] = None
    session_duration: str = "PT1H"
    relay_state: Optional[str] = None
    inline_policy: Optional[Union[str, Dict[str, Any]]] = None
    managed_policies: List[str] = Field(default_factory=list)
    customer_managed_policies: List[CustomerManagedPolicyRef] = Field(default_factory=list)
    assign_to_accounts: List[str] = Field(default_factory=list)
    assign_to_groups: List[str] = Field(default_factory=list)
    assign_to_users: List[str] = Field(default_factory=list)
    external_name: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator(
        "managed_policies",
        "assign_to_accounts",
        "assign_to_groups",
        "assign_to_users",
        mode="before",
    )
    @classmethod
    def coerce_string_lists(cls, value: Any) -> Any:
        """YAML turns bare account ids into ints; keep every entry a string."""
        return _as_string_list(value)

    @field_validator("customer_managed_policies", mode="before")
    @classmethod
    def default_customer_policies(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value: Any) -> Any:
        return _as_string_map(value)


class LegacyAssignment(_SpecModel):
    """An explicit (principal, type, permission set, account) tuple.

    ``principal`` is either the name of a declared group/user or a literal
    identity-store principal id.  ``permission_set`` is either the name of a
    declared permission set or a literal permission-set ARN.
    """

    principal: str
    principal_type: PrincipalType
    permission_set: str
    account_id: str

    @field_validator("principal_type", mode="before")
    @classmethod
    def normalise_principal_type(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("account_id", mode="before")
    @classmethod
    def coerce_account_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class ExternalIdpSpec(_SpecModel):
    """Reserved federation block.  Accepted verbatim, not rendered."""

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
        "frozen": True,
        "extra": "allow",
    }

    enabled: bool = True


class CompositeSpec(_SpecModel):
    """The caller's declarative Identity Center topology."""

    name: str
    organization_name: Optional[str] = None
    management_policies: Optional[List[str]] = None
    provider_config_ref: Optional[ProviderConfigRef] = None
    region: Optional[str] = None
    instance: Optional[IdentityCenterInstance] = Field(None, alias="identityCenterInstance")
    identity_store: Optional[IdentityStoreRef] = None
    groups: List[GroupSpec] = Field(default_factory=list)
    users: List[UserSpec] = Field(default_factory=list)
    permission_sets: List[PermissionSetSpec] = Field(default_factory=list)
    assignments: List[LegacyAssignment] = Field(default_factory=list)
    tags: Dict[str, str] = Field(default_factory=dict)
    external_idp: Optional[ExternalIdpSpec] = None

    @field_validator("groups", "users", "permission_sets", "assignments", mode="before")
    @classmethod
    def default_lists(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value: Any) -> Any:
        return _as_string_map(value)

    @classmethod
    def from_composite(cls, document: Dict[str, Any]) -> "CompositeSpec":
        """Build a spec from a full composite resource (``metadata`` + ``spec``).

        The composite's ``metadata.name`` becomes :attr:`name` unless the ``spec``
        body already names itself.
        """
        metadata = document.get("metadata") or {}
        body = dict(document.get("spec") or {})
        body.setdefault("name", metadata.get("name"))
        return cls.model_validate(body)


# ── Observed resources ───────────────────────────────────────────────────────


class ObjectMeta(_WireModel):
    """The subset of Kubernetes object metadata the indexer reads."""

    name: Optional[str] = None
    annotations: Dict[str, str] = Field(default_factory=dict)

    @field_validator("annotations", mode="before")
    @classmethod
    def default_annotations(cls, value: Any) -> Any:
        return {} if value is None else value


class ObservedResource(_WireModel):
    """A previously created managed resource as last seen by the caller."""

    model_config = {"populate_by_name": True, "alias_generator": to_camel, "extra": "allow"}

    api_version: Optional[str] = None
    kind: str
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    status: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return {} if value is None else value


# ── Render output ────────────────────────────────────────────────────────────


class KeyReference(_WireModel):
    """Resolve ``path`` from the draft with logical key ``key`` in this pass.

    ``resolved`` carries the target's identifier when it has already been
    observed; it is ``None`` on first creation.
    """

    type: Literal["key"] = "key"
    path: str
    key: str
    resolved: Optional[str] = None


class LiteralReference(_WireModel):
    """``path`` takes an external identifier supplied verbatim in the composite."""

    type: Literal["literal"] = "literal"
    path: str
    value: str


Reference = Annotated[Union[KeyReference, LiteralReference], Field(discriminator="type")]


class ResourceDraft(_WireModel):
    """One desired managed resource produced by a render pass."""

    key: str
    kind: str
    api_version: str
    manifest: Dict[str, Any]
    references: List[Reference] = Field(default_factory=list)
    tags: Dict[str, str] = Field(default_factory=dict)


class ResourceStatus(_WireModel):
    """Readiness and identifier of one logical resource."""

    kind: str
    name: str
    state: Literal["pending", "ready", "unready"] = "pending"
    ready: bool = False
    id: Optional[str] = None


class StatusSummary(_WireModel):
    """Aggregated view of the observed state, keyed by logical key."""

    instance_arn: Optional[str] = None
    identity_store_id: Optional[str] = None
    management_mode: str
    management_policies: List[str] = Field(default_factory=list)
    principals: Dict[str, ResourceStatus] = Field(default_factory=dict)
    permission_sets: Dict[str, ResourceStatus] = Field(default_factory=dict)
    assignments: Dict[str, ResourceStatus] = Field(default_factory=dict)
    ignored_observed: int = 0


class RenderRequest(_WireModel):
    """Input document of one render invocation.

    ``observed`` stays loosely typed so that one malformed entry degrades
    to "pending" instead of rejecting the whole request.
    """

    spec: CompositeSpec
    observed: List[Any] = Field(default_factory=list)

    @field_validator("observed", mode="before")
    @classmethod
    def default_observed(cls, value: Any) -> Any:
        return [] if value is None else value


class RenderOutput(_WireModel):
    """Output document of one render invocation."""

    resources: List[ResourceDraft] = Field(default_factory=list)
    status: StatusSummary

    def to_document(self) -> Dict[str, Any]:
        """Return the JSON-compatible, camelCase form of this output."""
        return self.model_dump(by_alias=True, mode="json")
