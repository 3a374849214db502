"""Exception hierarchy for the Identity Center render pipeline."""

from typing import Optional


class RenderError(Exception):
    """Base exception for every failure raised by a render pass.

    Attributes:
        reason: Human-readable explanation of what went wrong.
        key: Logical key of the entity involved, when one is known.
    """

    def __init__(self, reason: str, key: Optional[str] = None) -> None:
        """Initialise with the failure reason and optional logical key."""
        self.reason = reason
        self.key = key
        if key:
            super().__init__(f"{reason} (key: {key})")
        else:
            super().__init__(reason)


class ConfigurationError(RenderError):
    """The composite spec is internally inconsistent.

    Fatal for the whole pass: no drafts are returned.
    """


class PartialStateError(RenderError):
    """An observed resource is malformed or lacks its naming marker.

    Never raised out of a pass.  The indexer records it and the affected
    entry is treated as not yet created.
    """

    def __init__(self, reason: str, key: Optional[str] = None, position: Optional[int] = None) -> None:
        self.position = position
        super().__init__(reason, key)


class UnresolvedExtensionError(RenderError):
    """An ``externalIdp`` block was supplied but no federation stage can render it."""
