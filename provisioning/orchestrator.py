"""
Creation Orchestrator.

Drives one "add item" workflow through the tree's context menu and add
dialog, as a small state machine:

    IDLE -> MENU_OPEN -> DIALOG_OPEN -> SUBMITTED -> SUCCEEDED
                                                  -> CONFLICT_DETECTED
                                                  -> FAILED

The context menu and the add dialog are singletons in the UI, so every
flow starts by closing whatever surface a previous flow (or test) left
open: the dialog's Cancel button first, then Escape, then a click
outside.

Key Concepts Demonstrated:
- Explicit state tracking for a multi-step asynchronous UI workflow
- Racing two completion signals (dialog closed vs. validation error)
- Using the existence oracle to classify ambiguous dialog errors
- Hard failures carrying a diagnostic bundle
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from provisioning.diagnostics import capture_diagnostics
from provisioning.driver import UIDriver
from provisioning.errors import (
    ContainmentError,
    NetworkFailure,
    ProvisioningTimeout,
    ValidationConflict,
)
from provisioning.models import CreationState, ResourceKind
from provisioning.oracle import ItemExistenceOracle
from provisioning.selectors import TreeSelectors
from provisioning.settings import ProvisioningSettings
from provisioning.waiting import ReadinessPoller, WaitTimeout, wait_until

logger = logging.getLogger(__name__)


@dataclass
class CreationAttempt:
    """Bookkeeping for a single pass through the state machine."""

    kind: ResourceKind
    label: str
    parent_name: str | None = None
    state: CreationState = CreationState.IDLE
    history: list[CreationState] = field(default_factory=lambda: [CreationState.IDLE])
    item_id: str | None = None
    error_text: str | None = None

    def advance(self, state: CreationState) -> None:
        logger.debug("[%s %r] %s -> %s", self.kind.value, self.label, self.state.value, state.value)
        self.state = state
        self.history.append(state)


class CreationOrchestrator:
    """Creates folders, notes and tasks through the UI."""

    def __init__(
        self,
        driver: UIDriver,
        selectors: TreeSelectors,
        settings: ProvisioningSettings,
        *,
        oracle: ItemExistenceOracle | None = None,
        poller: ReadinessPoller | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.driver = driver
        self.selectors = selectors
        self.settings = settings
        self.clock = clock
        self.sleep = sleep
        self.oracle = oracle or ItemExistenceOracle(driver, selectors)
        self.poller = poller or ReadinessPoller(
            driver,
            selectors,
            poll_interval_ms=settings.poll_interval_ms,
            screenshot_dir=settings.screenshot_dir,
            clock=clock,
            sleep=sleep,
        )

    # -------------------------------------------------------------------------
    # Shared surface discipline
    # -------------------------------------------------------------------------

    def _surface_open(self) -> bool:
        return self.driver.is_visible(self.selectors.dialog) or self.driver.is_visible(
            self.selectors.context_menu
        )

    def _surface_closed_after_step(self) -> bool:
        timeout_ms = self.settings.dismiss_timeout_ms
        dialog_closed = self.driver.wait_for(self.selectors.dialog, state="hidden", timeout_ms=timeout_ms)
        menu_closed = self.driver.wait_for(
            self.selectors.context_menu, state="hidden", timeout_ms=timeout_ms
        )
        return dialog_closed and menu_closed

    def dismiss_open_surfaces(self) -> list[str]:
        """
        Close any leftover menu or dialog.

        Returns:
            The fallback steps that were needed, in order (empty when
            nothing was open).

        Raises:
            ProvisioningTimeout: If the surface survives every step.
        """
        if not self._surface_open():
            return []

        steps: list[str] = []
        cancel = f"{self.selectors.dialog} {self.selectors.dialog_cancel}"
        if self.driver.is_visible(cancel):
            self.driver.click(cancel)
            steps.append("cancel")
            if self._surface_closed_after_step():
                logger.info("Dismissed leftover surface via %s", steps)
                return steps

        self.driver.press_key("Escape")
        steps.append("escape")
        if self._surface_closed_after_step():
            logger.info("Dismissed leftover surface via %s", steps)
            return steps

        self.driver.click(self.selectors.outside_click_target, position={"x": 1, "y": 1})
        steps.append("click-outside")
        if self._surface_closed_after_step():
            logger.info("Dismissed leftover surface via %s", steps)
            return steps

        diagnostics = capture_diagnostics(
            self.driver, self.selectors, "dismiss open surface", self.settings.screenshot_dir
        )
        raise ProvisioningTimeout(
            f"A menu or dialog stayed open after {steps}",
            timeout_ms=self.settings.dismiss_timeout_ms,
            diagnostics=diagnostics,
        )

    # -------------------------------------------------------------------------
    # Workflow
    # -------------------------------------------------------------------------

    def _fail(self, attempt: CreationAttempt, reason: str, timeout_ms: int) -> ProvisioningTimeout:
        attempt.advance(CreationState.FAILED)
        diagnostics = capture_diagnostics(
            self.driver,
            self.selectors,
            f"{attempt.kind.value} {attempt.label}: {reason}",
            self.settings.screenshot_dir,
        )
        return ProvisioningTimeout(
            f"Creating {attempt.kind.value} {attempt.label!r} failed: {reason} within {timeout_ms}ms",
            timeout_ms=timeout_ms,
            diagnostics=diagnostics,
        )

    def _open_menu(self, attempt: CreationAttempt) -> None:
        timeout_ms = self.settings.menu_timeout_ms
        if attempt.parent_name is None:
            target = self.selectors.tree_root
        else:
            if not self.driver.wait_for(
                self.selectors.label_for(attempt.parent_name), state="visible", timeout_ms=timeout_ms
            ):
                raise self._fail(attempt, f"parent {attempt.parent_name!r} is not visible", timeout_ms)
            target = self.selectors.label_for(attempt.parent_name)

        self.driver.click(target, button="right")
        if not self.driver.wait_for(self.selectors.context_menu, state="visible", timeout_ms=timeout_ms):
            raise self._fail(attempt, "context menu did not open", timeout_ms)
        attempt.advance(CreationState.MENU_OPEN)

    def _open_dialog(self, attempt: CreationAttempt) -> str:
        action = self.selectors.menu_action(attempt.kind, root=attempt.parent_name is None)
        if not self.driver.wait_for(action, state="visible", timeout_ms=self.settings.menu_timeout_ms):
            raise self._fail(attempt, f"menu entry {action!r} not shown", self.settings.menu_timeout_ms)
        self.driver.click(action)

        name_input = self.selectors.name_input(attempt.kind)
        if not self.driver.wait_for(name_input, state="visible", timeout_ms=self.settings.dialog_timeout_ms):
            raise self._fail(attempt, "add dialog did not open", self.settings.dialog_timeout_ms)
        attempt.advance(CreationState.DIALOG_OPEN)
        return name_input

    def _submit(self, attempt: CreationAttempt, name_input: str) -> None:
        self.driver.fill(name_input, attempt.label)
        self.driver.click(f"{self.selectors.dialog} {self.selectors.dialog_submit}")
        attempt.advance(CreationState.SUBMITTED)

    def _poll_outcome(self) -> tuple[str, str | None] | None:
        if self.driver.is_visible(self.selectors.dialog_error):
            return "error", (self.driver.get_text(self.selectors.dialog_error) or "").strip()
        if not self.driver.is_visible(self.selectors.dialog):
            return "closed", None
        return None

    def _is_conflict(self, attempt: CreationAttempt, error_text: str) -> bool:
        if self.selectors.conflict_text.lower() in error_text.lower():
            return True
        return self.oracle.exists(attempt.label, attempt.parent_name)

    def _await_outcome(self, attempt: CreationAttempt) -> None:
        timeout_ms = self.settings.submit_timeout_ms
        try:
            outcome, error_text = wait_until(
                self._poll_outcome,
                timeout_ms / 1000,
                interval=self.settings.poll_interval_ms / 1000,
                clock=self.clock,
                sleep=self.sleep,
                description=f"add dialog for {attempt.label!r} to close",
            )
        except WaitTimeout as exc:
            raise self._fail(attempt, "dialog neither closed nor reported an error", timeout_ms) from exc

        if outcome == "error":
            attempt.error_text = error_text
            if self._is_conflict(attempt, error_text or ""):
                attempt.advance(CreationState.CONFLICT_DETECTED)
                logger.warning("Name conflict for %s %r: %s", attempt.kind.value, attempt.label, error_text)
                self.dismiss_open_surfaces()
                raise ValidationConflict(attempt.label, error_text or None)

            attempt.advance(CreationState.FAILED)
            diagnostics = capture_diagnostics(
                self.driver,
                self.selectors,
                f"{attempt.kind.value} {attempt.label}: {error_text}",
                self.settings.screenshot_dir,
            )
            raise NetworkFailure(
                f"Creating {attempt.kind.value} {attempt.label!r} failed: {error_text}",
                diagnostics=diagnostics,
            )

        try:
            self.poller.wait_until_ready(
                attempt.label, self.settings.readiness_timeout_ms, parent=attempt.parent_name
            )
        except ProvisioningTimeout:
            attempt.advance(CreationState.FAILED)
            raise

    def create(self, kind: ResourceKind, label: str, parent_name: str | None = None) -> CreationAttempt:
        """
        Create one item with exactly ``label``.

        Args:
            kind: Resource kind to create.
            label: Full label to type into the add dialog.
            parent_name: Exact label of the containing folder, or None
                for the tree root.

        Returns:
            The completed attempt (state ``SUCCEEDED``).

        Raises:
            ValidationConflict: The application reported a duplicate name.
            NetworkFailure: The dialog reported any other error.
            ProvisioningTimeout: A step did not complete in time.
            ContainmentError: A note or task was requested at the root.
        """
        kind = ResourceKind(kind)
        if parent_name is None and kind.is_leaf:
            raise ContainmentError(
                f"A {kind.value} cannot be created at the tree root; provide a parent folder"
            )

        attempt = CreationAttempt(kind=kind, label=label, parent_name=parent_name)
        logger.info(
            "Creating %s %r under %s", kind.value, label, repr(parent_name) if parent_name else "root"
        )
        self.dismiss_open_surfaces()
        self._open_menu(attempt)
        name_input = self._open_dialog(attempt)
        self._submit(attempt, name_input)
        self._await_outcome(attempt)
        attempt.item_id = self.driver.get_attribute(
            self.selectors.row_for(label, parent_name), "data-item-id"
        )
        attempt.advance(CreationState.SUCCEEDED)
        logger.info("Created %s %r (id=%s)", kind.value, label, attempt.item_id)
        return attempt
