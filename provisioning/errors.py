"""
Exception taxonomy for the provisioning engine.

Conflicts are resolved locally by the retry controller; every other
error propagates to the caller with a diagnostic bundle attached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from provisioning.diagnostics import DiagnosticBundle


class ProvisioningError(Exception):
    """Base class for all provisioning failures."""

    def __init__(self, message: str, *, diagnostics: DiagnosticBundle | None = None):
        super().__init__(message)
        self.message = message
        self.diagnostics = diagnostics

    def __str__(self) -> str:
        if self.diagnostics and self.diagnostics.screenshot_path:
            return f"{self.message} (screenshot: {self.diagnostics.screenshot_path})"
        return self.message


class ValidationConflict(ProvisioningError):
    """The application rejected the label because it already exists."""

    def __init__(self, label: str, message: str | None = None, **kwargs):
        super().__init__(message or f"An item named {label!r} already exists", **kwargs)
        self.label = label


class ConflictRetriesExhausted(ValidationConflict):
    """Every retry produced another conflict."""

    def __init__(self, labels: list[str], **kwargs):
        last = labels[-1] if labels else ""
        super().__init__(
            last,
            f"Name conflict persisted after {len(labels)} attempt(s): {labels}",
            **kwargs,
        )
        self.labels = list(labels)
        self.attempts = len(labels)


class ProvisioningTimeout(ProvisioningError):
    """An expected UI state was not reached in time."""

    def __init__(self, message: str, *, timeout_ms: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout_ms = timeout_ms


class NetworkFailure(ProvisioningError):
    """A backend error surfaced through the UI or a save response."""

    def __init__(self, message: str, *, status: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status


class ProvisioningAssertionError(ProvisioningError, AssertionError):
    """A post-condition check on provisioned data failed."""


class ContainmentError(ProvisioningError):
    """A root-level note or task was requested with synthetic parents disabled."""
