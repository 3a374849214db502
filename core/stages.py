"""Ordered render stages: the single source of truth for what runs and when.

Design:
- ``RenderStage`` is a :class:`Protocol` describing the one stage signature:
  ``(spec, context, observed) -> list[ResourceDraft]``.
- ``StageEntry`` binds a stage callable to a stable name and description.
- ``StagePlan`` is an immutable ordered sequence of entries.  Adding a stage
  is a splice (:meth:`StagePlan.insert_after`) that returns a new plan;
  nothing is renumbered and no existing stage changes.

Stages never see each other's output: :meth:`StagePlan.run` hands every
stage the same read-only inputs and concatenates what they return.
"""

from __future__ import annotations

import dataclasses
from typing import Iterator, Protocol, runtime_checkable

from api.models import CompositeSpec, ResourceDraft
from core.context import RenderContext
from core.logger import IdentityCenterLogger
from core.observed import ObservedIndex

logger = IdentityCenterLogger.get_logger()


# ── Stage protocol ───────────────────────────────────────────────────────────

@runtime_checkable
class RenderStage(Protocol):
    """A stage reads the shared inputs and returns its own drafts."""
    def __call__(self, spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]: ...  # noqa: E704


# ── Plan entry ───────────────────────────────────────────────────────────────

@dataclasses.dataclass(frozen=True, slots=True)
class StageEntry:
    """Metadata for a single stage in a plan."""
    name: str                 # e.g. "principals"
    description: str          # shown in logs
    stage: RenderStage        # the callable


# ── Plan ─────────────────────────────────────────────────────────────────────

class StagePlan:
    """Immutable ordered list of :class:`StageEntry`.

    Usage::

        plan = StagePlan([
            StageEntry("principals", "Groups, users, memberships", render_principals),
            StageEntry("assignments", "Account assignments", render_assignments),
        ])
        plan = plan.insert_after("principals", StageEntry("audit", "Audit hooks", render_audit))
        drafts = plan.run(spec, context, observed)
    """

    def __init__(self, entries: list[StageEntry] | tuple[StageEntry, ...]) -> None:
        names = [entry.name for entry in entries]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate stage names: {', '.join(duplicates)}")
        self._entries: tuple[StageEntry, ...] = tuple(entries)

    def __iter__(self) -> Iterator[StageEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # ── lookup helpers ───────────────────────────────────────────────────

    def names(self) -> list[str]:
        """Return stage names in execution order."""
        return [entry.name for entry in self._entries]

    def get(self, name: str) -> StageEntry | None:
        """Return the entry called *name*, or ``None``."""
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    # ── splicing ─────────────────────────────────────────────────────────

    def insert_after(self, name: str, entry: StageEntry) -> StagePlan:
        """Return a new plan with *entry* placed right after stage *name*."""
        position = self._index(name) + 1
        return StagePlan(self._entries[:position] + (entry,) + self._entries[position:])

    def replace(self, name: str, stage: RenderStage) -> StagePlan:
        """Return a new plan where stage *name* runs *stage* instead."""
        position = self._index(name)
        current = self._entries[position]
        updated = dataclasses.replace(current, stage=stage)
        return StagePlan(self._entries[:position] + (updated,) + self._entries[position + 1:])

    def _index(self, name: str) -> int:
        for position, entry in enumerate(self._entries):
            if entry.name == name:
                return position
        raise KeyError(f"No stage named {name!r}")

    # ── execution ────────────────────────────────────────────────────────

    def run(self, spec: CompositeSpec, context: RenderContext, observed: ObservedIndex) -> list[ResourceDraft]:
        """Invoke every stage in order and concatenate their drafts.

        Any exception propagates unchanged; the partial list is discarded
        with the stack frame, so callers never see a truncated result.
        """
        drafts: list[ResourceDraft] = []
        for entry in self._entries:
            produced = entry.stage(spec, context, observed)
            logger.debug(
                "Stage finished",
                extra={"stage": entry.name, "draft_count": len(produced)},
            )
            drafts.extend(produced)
        return drafts
