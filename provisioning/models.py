"""
Data model for the provisioning engine.

The engine owns ``ProvisionedResourceRecord`` and ``CleanupReport``; the
tree items themselves belong to the application under test and are only
ever observed through the UI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ResourceKind(str, Enum):
    """Enumeration of resource kinds the tree can hold."""

    FOLDER = "folder"
    NOTE = "note"
    TASK = "task"

    @property
    def is_leaf(self) -> bool:
        """Notes and tasks must live inside a folder."""
        return self is not ResourceKind.FOLDER


class CreationState(str, Enum):
    """States of a single creation attempt."""

    IDLE = "idle"
    MENU_OPEN = "menu_open"
    DIALOG_OPEN = "dialog_open"
    SUBMITTED = "submitted"
    SUCCEEDED = "succeeded"
    CONFLICT_DETECTED = "conflict_detected"
    FAILED = "failed"


@dataclass(frozen=True)
class ResourceSpec:
    """
    Request to provision one resource.

    Attributes:
        kind: Folder, note or task.
        requested_name: Human-readable prefix for the label.
        parent_ref: Requested or resolved name of the parent, or None for root.
        content: Body text for notes.
    """

    kind: ResourceKind
    requested_name: str
    parent_ref: str | None = None
    content: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ResourceKind):
            object.__setattr__(self, "kind", ResourceKind(self.kind))
        if not self.requested_name or not self.requested_name.strip():
            raise ValueError("requested_name must be a non-empty string")
        if self.content is not None and self.kind is not ResourceKind.NOTE:
            raise ValueError(f"content is only supported for notes, not {self.kind.value}")


@dataclass
class ProvisionedResourceRecord:
    """
    A resource the engine created and confirmed ready.

    Attributes:
        spec: The submitted request.
        resolved_name: Label the item actually received.
        parent_name: Resolved label of the containing folder, if any.
        parent_synthetic: True when the parent was created by the engine
            to satisfy the containment requirement.
        synthetic_parent: Record of that synthetic folder.
        item_id: Application id (``data-item-id``), when it was read.
        owner: Identity the resource belongs to.
        created_at: Timestamp when provisioning completed.
    """

    spec: ResourceSpec
    resolved_name: str
    parent_name: str | None = None
    parent_synthetic: bool = False
    synthetic_parent: ProvisionedResourceRecord | None = None
    item_id: str | None = None
    owner: SeedIdentity | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def kind(self) -> ResourceKind:
        return self.spec.kind

    def to_dict(self) -> dict[str, Any]:
        """Serialize the record for logs and reports."""
        return {
            "kind": self.spec.kind.value,
            "requested_name": self.spec.requested_name,
            "resolved_name": self.resolved_name,
            "parent_name": self.parent_name,
            "parent_synthetic": self.parent_synthetic,
            "item_id": self.item_id,
            "owner": self.owner.email if self.owner else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class RetryState:
    """Per-call retry bookkeeping."""

    attempt: int = 0
    last_error: Exception | None = None
    labels: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SeedIdentity:
    """Account that owns provisioned data."""

    email: str
    password: str


@dataclass(frozen=True)
class CleanupFailure:
    identity: str
    reason: str


@dataclass
class CleanupReport:
    """
    Outcome of the end-of-run teardown.

    Attributes:
        deleted: Number of identities removed.
        failed: Number of identities that could not be removed.
        tier: "none", "bulk" or "per-identity".
        failures: Details for every failed identity.
    """

    deleted: int = 0
    failed: int = 0
    tier: str = "none"
    failures: list[CleanupFailure] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        return {"deleted": self.deleted, "failed": self.failed}
