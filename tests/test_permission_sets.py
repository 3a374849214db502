"""Tests for the permission-set stage and its policy attachments."""

import json
import sys
import os
import pytest

# Ensure the project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from api.exceptions import ConfigurationError
from api.models import CompositeSpec, RenderRequest
from core.context import build_context
from core.keys import permission_set_key
from core.observed import COMPOSITION_RESOURCE_NAME, EXTERNAL_NAME, index_observed
from core.permission_sets import normalise_policy_document, render_permission_sets
from core.pipeline import render

INSTANCE = "arn:aws:sso:::instance/ssoins-668444b406cda8b2"
PS_ARN = "arn:aws:sso:::permissionSet/ssoins-668444b406cda8b2/ps-1a2b3c4d5e6f7890"
POWER_USER = "arn:aws:iam::aws:policy/PowerUserAccess"
VIEW_ONLY = "arn:aws:iam::aws:policy/job-function/ViewOnlyAccess"


def _spec(**fields) -> CompositeSpec:
    body = {
        "name": "acme",
        "identityCenterInstance": {"arn": INSTANCE},
        "tags": {"cost-center": "platform", "environment": "prod"},
        "permissionSets": [{
            "name": "DeveloperAccess",
            "description": "Power user access",
            "inlinePolicy": {"Version": "2012-10-17", "Statement": []},
            "managedPolicies": [POWER_USER, POWER_USER, VIEW_ONLY],
            "customerManagedPolicies": [
                {"name": "boundary"},
                {"name": "boundary", "path": "/"},
                {"name": "boundary", "path": "/platform/"},
            ],
            "tags": {"cost-center": "engineering"},
        }],
    }
    body.update(fields)
    return CompositeSpec.model_validate(body)


def _observed_permission_set() -> dict:
    return {
        "kind": "PermissionSet",
        "metadata": {"annotations": {COMPOSITION_RESOURCE_NAME: permission_set_key("DeveloperAccess")}},
        "status": {"atProvider": {"arn": PS_ARN}},
    }


def _render(spec: CompositeSpec, observed: list | None = None):
    return render_permission_sets(spec, build_context(spec), index_observed(observed or []))


# ── Permission sets ──────────────────────────────────────────────────────────


class TestPermissionSet:
    def test_no_permission_sets_needs_no_instance(self) -> None:
        spec = CompositeSpec(name="acme")
        assert _render(spec) == []

    def test_missing_instance_arn_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            _render(_spec(identityCenterInstance=None))

    def test_drafts_and_keys(self) -> None:
        drafts = _render(_spec())
        assert [(draft.kind, draft.key) for draft in drafts] == [
            ("PermissionSet", "permission-set-developeraccess"),
            ("PermissionSetInlinePolicy", "permission-set-inline-policy-developeraccess"),
            ("ManagedPolicyAttachment", "permission-set-managed-policy-developeraccess-aws-policy-poweruseraccess"),
            ("ManagedPolicyAttachment", "permission-set-managed-policy-developeraccess-aws-policy-job-function-viewonlyaccess"),
            ("CustomerManagedPolicyAttachment", "permission-set-customer-policy-developeraccess-boundary"),
            ("CustomerManagedPolicyAttachment", "permission-set-customer-policy-developeraccess-platform-boundary"),
        ]

    def test_permission_set_manifest(self) -> None:
        manifest = _render(_spec())[0].manifest
        assert manifest["apiVersion"] == "ssoadmin.aws.upbound.io/v1beta1"
        assert manifest["spec"]["managementPolicies"] == ["*"]
        assert manifest["spec"]["providerConfigRef"] == {"name": "acme"}
        for_provider = manifest["spec"]["forProvider"]
        assert list(for_provider)[0] == "region"
        assert for_provider["instanceArn"] == INSTANCE
        assert for_provider["name"] == "DeveloperAccess"
        assert for_provider["description"] == "Power user access"
        assert for_provider["sessionDuration"] == "PT1H"
        assert "relayState" not in for_provider

    def test_tag_precedence(self) -> None:
        """Entity tags beat composite tags, which beat base tags."""
        drafts = _render(_spec())
        assert drafts[0].manifest["spec"]["forProvider"]["tags"] == {
            "managed-by": "crossplane",
            "component": "identity-center",
            "organization": "acme",
            "cost-center": "engineering",
            "environment": "prod",
        }
        assert drafts[0].tags["cost-center"] == "engineering"

    def test_attachments_carry_tags_outside_the_manifest(self) -> None:
        for draft in _render(_spec())[1:]:
            assert "tags" not in draft.manifest["spec"]["forProvider"]
            assert draft.tags["cost-center"] == "engineering"


# ── Attachments ──────────────────────────────────────────────────────────────


class TestAttachments:
    def test_inline_policy_is_normalised_json(self) -> None:
        inline = _render(_spec())[1]
        policy = inline.manifest["spec"]["forProvider"]["inlinePolicy"]
        assert policy == '{"Statement": [], "Version": "2012-10-17"}'
        assert json.loads(policy) == {"Version": "2012-10-17", "Statement": []}

    def test_inline_policy_string_passes_through(self) -> None:
        assert normalise_policy_document('{"b": 1, "a": 2}') == '{"b": 1, "a": 2}'

    def test_customer_policy_reference(self) -> None:
        customer = _render(_spec())[-1]
        assert customer.manifest["spec"]["forProvider"]["customerManagedPolicyReference"] == [
            {"name": "boundary", "path": "/platform/"},
        ]

    def test_attachments_reference_parent_by_key(self) -> None:
        for draft in _render(_spec())[1:]:
            (reference,) = draft.references
            assert reference.key == "permission-set-developeraccess"
            assert reference.path == "spec.forProvider.permissionSetArn"
            assert reference.resolved is None
            assert "permissionSetArn" not in draft.manifest["spec"]["forProvider"]

    def test_observed_parent_arn_is_filled_in(self) -> None:
        drafts = _render(_spec(), [_observed_permission_set()])
        for draft in drafts[1:]:
            assert draft.references[0].resolved == PS_ARN
            assert draft.manifest["spec"]["forProvider"]["permissionSetArn"] == PS_ARN

    def test_no_optional_attachments(self) -> None:
        spec = _spec(permissionSets=[{"name": "Minimal"}])
        assert [draft.kind for draft in _render(spec)] == ["PermissionSet"]

    def test_same_policy_name_in_different_accounts(self) -> None:
        """An AWS-managed and a customer-owned policy may share a name."""
        spec = _spec(permissionSets=[{
            "name": "Ops",
            "managedPolicies": [
                "arn:aws:iam::aws:policy/ReadOnlyAccess",
                "arn:aws:iam::123456789012:policy/ReadOnlyAccess",
            ],
        }])
        output = render(RenderRequest(spec=spec))
        assert [resource.key for resource in output.resources if resource.kind == "ManagedPolicyAttachment"] == [
            "permission-set-managed-policy-ops-aws-policy-readonlyaccess",
            "permission-set-managed-policy-ops-123456789012-policy-readonlyaccess",
        ]


# ── External names ───────────────────────────────────────────────────────────


class TestPermissionSetExternalNames:
    def test_explicit_external_name(self) -> None:
        spec = _spec(permissionSets=[{"name": "Imported", "externalName": f"{PS_ARN},{INSTANCE}"}])
        annotations = _render(spec)[0].manifest["metadata"]["annotations"]
        assert annotations[EXTERNAL_NAME] == f"{PS_ARN},{INSTANCE}"

    def test_full_control_computes_no_external_names(self) -> None:
        drafts = _render(_spec(), [_observed_permission_set()])
        assert all(EXTERNAL_NAME not in draft.manifest["metadata"]["annotations"] for draft in drafts)

    def test_observe_only_computes_external_names(self) -> None:
        drafts = _render(_spec(managementPolicies=["Observe"]), [_observed_permission_set()])
        names = {draft.kind: draft.manifest["metadata"]["annotations"].get(EXTERNAL_NAME) for draft in drafts}
        assert names["PermissionSet"] == f"{PS_ARN},{INSTANCE}"
        assert names["PermissionSetInlinePolicy"] == f"{PS_ARN},{INSTANCE}"
        assert drafts[2].manifest["metadata"]["annotations"][EXTERNAL_NAME] == f"{POWER_USER},{PS_ARN},{INSTANCE}"
        assert drafts[-1].manifest["metadata"]["annotations"][EXTERNAL_NAME] == (
            f"boundary,/platform/,{PS_ARN},{INSTANCE}"
        )

    def test_observe_only_without_observed_arn(self) -> None:
        drafts = _render(_spec(managementPolicies=["Observe"]))
        assert all(EXTERNAL_NAME not in draft.manifest["metadata"]["annotations"] for draft in drafts)
        assert drafts[0].manifest["spec"]["managementPolicies"] == ["Observe"]
