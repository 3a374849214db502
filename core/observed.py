"""
Observed-State Indexer Module

Responsibility:
- Index the caller's observed resources by logical key
- Extract each resource's already-assigned identifier and readiness
- Absorb malformed entries as PartialStateError records (never raised)

The logical key is read from the ``crossplane.io/composition-resource-name``
annotation that every draft carries.  Duplicate keys resolve last-observed-wins.
An empty or absent list yields an empty index: "nothing exists yet".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from api.exceptions import PartialStateError
from api.models import ObservedResource
from core import external_names
from core.logger import IdentityCenterLogger

logger = IdentityCenterLogger.get_logger()

COMPOSITION_RESOURCE_NAME = "crossplane.io/composition-resource-name"
EXTERNAL_NAME = "crossplane.io/external-name"

# status.atProvider fields holding the provider-assigned identifier, per kind.
_IDENTIFIER_FIELDS: dict[str, tuple[str, ...]] = {
    "Group": ("groupId",),
    "User": ("userId",),
    "GroupMembership": ("membershipId",),
    "PermissionSet": ("arn",),
}
_DEFAULT_IDENTIFIER_FIELDS: tuple[str, ...] = ("id", "arn")


@dataclass(frozen=True)
class ObservedEntry:
    """Last-known state of one previously created resource."""

    key: str
    kind: str
    external_id: Optional[str]
    ready: bool
    at_provider: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ObservedIndex:
    """Read-only lookup from logical key to :class:`ObservedEntry`."""

    entries: Mapping[str, ObservedEntry] = field(default_factory=lambda: MappingProxyType({}))
    degraded: tuple[PartialStateError, ...] = ()

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> Optional[ObservedEntry]:
        return self.entries.get(key)

    def identifier(self, key: str) -> Optional[str]:
        """Return the provider-assigned identifier for *key*, if observed."""
        entry = self.entries.get(key)
        return entry.external_id if entry else None

    def is_ready(self, key: str) -> bool:
        entry = self.entries.get(key)
        return bool(entry and entry.ready)

    def first_at_provider(self, field_name: str, kinds: Iterable[str]) -> Optional[str]:
        """Return the first non-empty ``atProvider.<field_name>`` among *kinds*.

        Entries are scanned in key order so the answer does not depend on
        the order the caller listed observed resources in.
        """
        wanted = set(kinds)
        for key in sorted(self.entries):
            entry = self.entries[key]
            if entry.kind not in wanted:
                continue
            value = entry.at_provider.get(field_name)
            if value:
                return str(value)
        return None


def index_observed(observed: Optional[Iterable[Any]]) -> ObservedIndex:
    """Build an :class:`ObservedIndex` from raw observed resources.

    Accepts plain mappings (as read from YAML) or :class:`ObservedResource`
    models.  Entries that cannot be indexed are recorded on
    :attr:`ObservedIndex.degraded` and otherwise ignored.
    """
    entries: dict[str, ObservedEntry] = {}
    degraded: list[PartialStateError] = []

    for position, raw in enumerate(observed or ()):
        try:
            entry = _index_entry(raw, position)
        except PartialStateError as exc:
            logger.warning(
                "Ignoring malformed observed resource",
                extra={"position": position, "reason": exc.reason},
            )
            degraded.append(exc)
            continue

        if entry.key in entries:
            logger.debug("Duplicate observed key, keeping the later entry", extra={"key": entry.key})
        entries[entry.key] = entry

    logger.debug(
        "Observed state indexed",
        extra={"observed_count": len(entries), "degraded_count": len(degraded)},
    )
    return ObservedIndex(entries=MappingProxyType(entries), degraded=tuple(degraded))


def _index_entry(raw: Any, position: int) -> ObservedEntry:
    """Turn one raw observed resource into an :class:`ObservedEntry`."""
    if isinstance(raw, ObservedResource):
        resource = raw
    elif isinstance(raw, Mapping):
        try:
            resource = ObservedResource.model_validate(raw)
        except ValidationError as exc:
            raise PartialStateError(
                f"Observed resource does not fit the schema ({exc.error_count()} error(s))",
                position=position,
            ) from exc
    else:
        raise PartialStateError(
            f"Observed entry is a {type(raw).__name__}, not a mapping",
            position=position,
        )

    annotations = resource.metadata.annotations
    key = annotations.get(COMPOSITION_RESOURCE_NAME)
    if not key:
        raise PartialStateError(
            f"Observed {resource.kind} has no {COMPOSITION_RESOURCE_NAME} annotation",
            position=position,
        )

    at_provider = resource.status.get("atProvider")
    if not isinstance(at_provider, Mapping):
        at_provider = {}

    return ObservedEntry(
        key=key,
        kind=resource.kind,
        external_id=_identifier(resource, at_provider),
        ready=_is_ready(resource.status.get("conditions")),
        at_provider=MappingProxyType(dict(at_provider)),
    )


def _identifier(resource: ObservedResource, at_provider: Mapping[str, Any]) -> Optional[str]:
    for field_name in _IDENTIFIER_FIELDS.get(resource.kind, _DEFAULT_IDENTIFIER_FIELDS):
        value = at_provider.get(field_name)
        if value:
            return str(value)

    # Before creation the external name still equals metadata.name.
    external_name = resource.metadata.annotations.get(EXTERNAL_NAME)
    if external_name and external_name != resource.metadata.name:
        return external_names.primary_identifier(resource.kind, external_name)
    return None


def _is_ready(conditions: Any) -> bool:
    if not isinstance(conditions, list):
        return False
    return any(
        isinstance(condition, Mapping)
        and condition.get("type") == "Ready"
        and condition.get("status") == "True"
        for condition in conditions
    )
