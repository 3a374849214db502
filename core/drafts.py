"""Common manifest envelope for every drafted managed resource.

Every renderer goes through :func:`build_draft`, which is the one place
``managementPolicies``, ``providerConfigRef``, ``region``, the naming
annotation and the merged tags are injected.  References that already
carry a value are written into the manifest at their ``path``.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from api.models import KeyReference, LiteralReference, ResourceDraft
from core.context import RenderContext
from core.observed import COMPOSITION_RESOURCE_NAME, EXTERNAL_NAME

IDENTITYSTORE_API = "identitystore.aws.upbound.io/v1beta1"
SSOADMIN_API = "ssoadmin.aws.upbound.io/v1beta1"

AnyReference = Union[KeyReference, LiteralReference]


def build_draft(
    context: RenderContext,
    *,
    kind: str,
    api_version: str,
    key: str,
    for_provider: Mapping[str, Any],
    references: Iterable[AnyReference] = (),
    tags: Optional[Mapping[str, str]] = None,
    taggable: bool = False,
    external_name: Optional[str] = None,
) -> ResourceDraft:
    """Wrap *for_provider* in a complete managed-resource manifest.

    Args:
        context: The pass's render context.
        kind: Managed resource kind, e.g. ``"PermissionSet"``.
        api_version: Group/version of *kind*.
        key: Logical key; becomes ``metadata.name`` and the naming annotation.
        for_provider: Resource-specific ``spec.forProvider`` fields.
        references: In-pass or literal references; any with a known value
            are also written into the manifest.
        tags: Fully merged tags for this resource (composite tags if omitted).
        taggable: Whether the provider accepts ``forProvider.tags`` for *kind*.
        external_name: Import identifier for an existing cloud resource.
    """
    resource_tags = dict(tags) if tags is not None else context.resource_tags()
    references = list(references)

    provider_fields: dict[str, Any] = {"region": context.region, **for_provider}
    if taggable:
        provider_fields["tags"] = dict(resource_tags)

    annotations = {COMPOSITION_RESOURCE_NAME: key}
    if external_name:
        annotations[EXTERNAL_NAME] = external_name

    manifest: dict[str, Any] = {
        "apiVersion": api_version,
        "kind": kind,
        "metadata": {"name": key, "annotations": annotations},
        "spec": {
            "managementPolicies": list(context.management_policies),
            "providerConfigRef": {"name": context.provider_config_name},
            "forProvider": provider_fields,
        },
    }

    for reference in references:
        value = reference.value if isinstance(reference, LiteralReference) else reference.resolved
        if value:
            _set_nested_value(manifest, reference.path, value)

    return ResourceDraft(
        key=key,
        kind=kind,
        api_version=api_version,
        manifest=manifest,
        references=references,
        tags=resource_tags,
    )


def _set_nested_value(data: dict, path: str, value: Any) -> None:
    """Set a nested dictionary value using dot notation."""
    keys = path.split(".")
    current = data
    for key in keys[:-1]:
        current = current.setdefault(key, {})
    current[keys[-1]] = value
