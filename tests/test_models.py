"""Tests for the Pydantic models of the composite spec and render output."""

import sys
import os
import pytest

# Ensure the project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from api.models import (
    CompositeSpec,
    KeyReference,
    LegacyAssignment,
    LiteralReference,
    ObservedResource,
    PermissionSetSpec,
    PrincipalType,
    RenderOutput,
    ResourceDraft,
    StatusSummary,
    UserSpec,
)
from pydantic import ValidationError


# ── CompositeSpec ────────────────────────────────────────────────────────────


class TestCompositeSpec:
    """Validate the top-level composite schema."""

    def test_minimal_spec(self) -> None:
        """Only the name is required; every collection defaults to empty."""
        spec = CompositeSpec(name="acme")
        assert spec.name == "acme"
        assert spec.groups == []
        assert spec.users == []
        assert spec.permission_sets == []
        assert spec.assignments == []
        assert spec.tags == {}
        assert spec.instance is None
        assert spec.identity_store is None
        assert spec.management_policies is None

    def test_camel_case_aliases(self) -> None:
        spec = CompositeSpec.model_validate({
            "name": "acme",
            "organizationName": "Acme Corp",
            "managementPolicies": ["Observe"],
            "providerConfigRef": {"name": "aws-prod"},
            "identityCenterInstance": {"arn": "arn:aws:sso:::instance/ssoins-1"},
            "identityStore": {"id": "d-1234567890"},
        })
        assert spec.organization_name == "Acme Corp"
        assert spec.management_policies == ["Observe"]
        assert spec.provider_config_ref.name == "aws-prod"
        assert spec.instance.arn == "arn:aws:sso:::instance/ssoins-1"
        assert spec.identity_store.id == "d-1234567890"

    def test_null_collections_become_empty(self) -> None:
        """YAML ``groups:`` with no value parses as None."""
        spec = CompositeSpec.model_validate({"name": "acme", "groups": None, "tags": None})
        assert spec.groups == []
        assert spec.tags == {}

    def test_tag_values_coerced_to_strings(self) -> None:
        spec = CompositeSpec.model_validate({"name": "acme", "tags": {"tier": 1, "public": False}})
        assert spec.tags == {"tier": "1", "public": "False"}

    def test_missing_name_raises(self) -> None:
        with pytest.raises(ValidationError):
            CompositeSpec.model_validate({"groups": []})

    def test_spec_is_frozen(self) -> None:
        spec = CompositeSpec(name="acme")
        with pytest.raises(ValidationError):
            spec.name = "other"

    def test_from_composite_uses_metadata_name(self) -> None:
        spec = CompositeSpec.from_composite({
            "apiVersion": "aws.platform.upbound.io/v1alpha1",
            "kind": "IdentityCenter",
            "metadata": {"name": "example-minimal"},
            "spec": {"region": "us-east-2"},
        })
        assert spec.name == "example-minimal"
        assert spec.region == "us-east-2"

    def test_from_composite_keeps_explicit_name(self) -> None:
        spec = CompositeSpec.from_composite({
            "metadata": {"name": "from-metadata"},
            "spec": {"name": "from-spec"},
        })
        assert spec.name == "from-spec"

    def test_external_idp_accepts_unknown_fields(self) -> None:
        spec = CompositeSpec.model_validate({
            "name": "acme",
            "externalIdp": {"provider": "okta", "metadataUrl": "https://idp.example.com"},
        })
        assert spec.external_idp is not None
        assert spec.external_idp.enabled is True


# ── Entities ─────────────────────────────────────────────────────────────────


class TestEntityModels:
    """Validate groups, users, permission sets and legacy assignments."""

    def test_user_defaults(self) -> None:
        user = UserSpec(name="jane.doe@example.com")
        assert user.groups == []
        assert user.display_name is None
        assert user.external_name is None

    def test_permission_set_defaults(self) -> None:
        permission_set = PermissionSetSpec(name="ReadOnly")
        assert permission_set.session_duration == "PT1H"
        assert permission_set.inline_policy is None
        assert permission_set.managed_policies == []
        assert permission_set.customer_managed_policies == []

    def test_numeric_account_ids_become_strings(self) -> None:
        """YAML parses unquoted 12-digit account ids as ints."""
        permission_set = PermissionSetSpec.model_validate({
            "name": "ReadOnly",
            "assignToAccounts": [123456789012, "210987654321"],
        })
        assert permission_set.assign_to_accounts == ["123456789012", "210987654321"]

    def test_inline_policy_accepts_mapping_or_string(self) -> None:
        as_dict = PermissionSetSpec(name="A", inline_policy={"Version": "2012-10-17"})
        as_str = PermissionSetSpec(name="B", inline_policy='{"Version": "2012-10-17"}')
        assert isinstance(as_dict.inline_policy, dict)
        assert isinstance(as_str.inline_policy, str)

    def test_customer_policy_path_defaults_to_root(self) -> None:
        permission_set = PermissionSetSpec.model_validate({
            "name": "Dev",
            "customerManagedPolicies": [{"name": "boundary"}],
        })
        assert permission_set.customer_managed_policies[0].path == "/"

    def test_legacy_assignment_normalises_principal_type(self) -> None:
        assignment = LegacyAssignment.model_validate({
            "principal": "Developers",
            "principalType": "group",
            "permissionSet": "Dev",
            "accountId": 123456789012,
        })
        assert assignment.principal_type is PrincipalType.GROUP
        assert assignment.account_id == "123456789012"

    def test_legacy_assignment_rejects_unknown_principal_type(self) -> None:
        with pytest.raises(ValidationError):
            LegacyAssignment.model_validate({
                "principal": "Developers",
                "principalType": "ROLE",
                "permissionSet": "Dev",
                "accountId": "123456789012",
            })


# ── Observed ─────────────────────────────────────────────────────────────────


class TestObservedResource:
    """Validate the observed managed-resource envelope."""

    def test_minimal_observed(self) -> None:
        resource = ObservedResource.model_validate({"kind": "Group"})
        assert resource.metadata.annotations == {}
        assert resource.status == {}

    def test_extra_fields_are_kept(self) -> None:
        resource = ObservedResource.model_validate({"kind": "Group", "spec": {"forProvider": {}}})
        assert resource.model_extra == {"spec": {"forProvider": {}}}

    def test_kind_is_required(self) -> None:
        with pytest.raises(ValidationError):
            ObservedResource.model_validate({"metadata": {"name": "x"}})


# ── Output ───────────────────────────────────────────────────────────────────


class TestRenderOutput:
    """Validate references, drafts and the serialised output document."""

    def test_reference_discriminator(self) -> None:
        draft = ResourceDraft.model_validate({
            "key": "k",
            "kind": "GroupMembership",
            "apiVersion": "identitystore.aws.upbound.io/v1beta1",
            "manifest": {},
            "references": [
                {"type": "key", "path": "spec.forProvider.groupId", "key": "identity-center-group-a"},
                {"type": "literal", "path": "spec.forProvider.memberId", "value": "u-1"},
            ],
        })
        assert isinstance(draft.references[0], KeyReference)
        assert draft.references[0].resolved is None
        assert isinstance(draft.references[1], LiteralReference)

    def test_unknown_reference_type_raises(self) -> None:
        with pytest.raises(ValidationError):
            ResourceDraft.model_validate({
                "key": "k",
                "kind": "Group",
                "apiVersion": "v1",
                "manifest": {},
                "references": [{"type": "selector", "path": "x"}],
            })

    def test_to_document_uses_camel_case(self) -> None:
        output = RenderOutput(
            resources=[],
            status=StatusSummary(management_mode="FullControl", ignored_observed=2),
        )
        document = output.to_document()
        assert document["resources"] == []
        assert document["status"]["managementMode"] == "FullControl"
        assert document["status"]["ignoredObserved"] == 2
        assert document["status"]["permissionSets"] == {}
