"""
Conflict Retry Controller.

Wraps the orchestrator and retries a creation with a fresh label when
the application reports a duplicate name. Attempts are bounded and
spaced with exponential backoff; exhausting them raises
``ConflictRetriesExhausted``. Any other failure propagates untouched on
the first occurrence.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from provisioning.errors import ConflictRetriesExhausted, ValidationConflict
from provisioning.models import ResourceKind, RetryState
from provisioning.names import NameSequence
from provisioning.orchestrator import CreationAttempt, CreationOrchestrator

logger = logging.getLogger(__name__)


class ConflictRetryController:
    """Bounded retry loop around ``CreationOrchestrator.create``."""

    def __init__(
        self,
        orchestrator: CreationOrchestrator,
        names: NameSequence,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 0.25,
        backoff_factor: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.orchestrator = orchestrator
        self.names = names
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.backoff_factor = backoff_factor
        self.sleep = sleep

    def backoff_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return self.backoff_seconds * (self.backoff_factor ** (attempt - 1))

    def create(
        self,
        kind: ResourceKind,
        prefix: str,
        parent_name: str | None = None,
        *,
        first_label: str | None = None,
    ) -> CreationAttempt:
        """
        Create an item labelled ``prefix`` plus a unique suffix.

        Args:
            kind: Resource kind.
            prefix: Human-readable prefix for generated labels.
            parent_name: Exact label of the parent folder, if any.
            first_label: Label for the first attempt; generated when omitted.

        Returns:
            The successful attempt; its ``label`` is the resolved name.

        Raises:
            ConflictRetriesExhausted: Every attempt hit a name conflict.
        """
        state = RetryState()
        label = first_label or self.names.next(prefix)
        while True:
            state.attempt += 1
            state.labels.append(label)
            try:
                return self.orchestrator.create(kind, label, parent_name)
            except ValidationConflict as exc:
                state.last_error = exc
                if state.attempt >= self.max_attempts:
                    logger.error(
                        "Giving up on %s %r after %d conflicting attempts",
                        kind.value,
                        prefix,
                        state.attempt,
                    )
                    raise ConflictRetriesExhausted(state.labels) from exc

                delay = self.backoff_for(state.attempt)
                label = self.names.next(prefix)
                logger.warning(
                    "Conflict on %r (attempt %d/%d); retrying as %r in %.2fs",
                    exc.label,
                    state.attempt,
                    self.max_attempts,
                    label,
                    delay,
                )
                if delay > 0:
                    self.sleep(delay)
