"""
Content Populator.

Opens a freshly created note in the rich-text editor and types its body.
The editor saves on a 1s debounce, so control only returns to the caller
once the save is acknowledged (a ``PATCH /api/items/<id>`` response) or,
in ``delay`` mode, after a conservative fixed wait.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from provisioning.diagnostics import capture_diagnostics
from provisioning.driver import NetworkResponse, UIDriver
from provisioning.errors import NetworkFailure, ProvisioningAssertionError, ProvisioningTimeout
from provisioning.models import ProvisionedResourceRecord, ResourceKind
from provisioning.selectors import TreeSelectors
from provisioning.settings import ProvisioningSettings
from provisioning.waiting import WaitTimeout, wait_until

logger = logging.getLogger(__name__)


class _SaveListener:
    """Collects save responses for one item id."""

    def __init__(self, item_id: str | None):
        self.item_id = item_id
        self.responses: list[NetworkResponse] = []
        self._lock = threading.Lock()

    def __call__(self, response: NetworkResponse) -> None:
        if response.method.upper() not in {"PATCH", "PUT"}:
            return
        if self.item_id and not response.url.rstrip("/").endswith(f"/{self.item_id}"):
            return
        with self._lock:
            self.responses.append(response)

    def first(self) -> NetworkResponse | None:
        with self._lock:
            return self.responses[0] if self.responses else None


class ContentPopulator:
    """Sets the body of a provisioned note and waits for it to persist."""

    def __init__(
        self,
        driver: UIDriver,
        selectors: TreeSelectors,
        settings: ProvisioningSettings,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.driver = driver
        self.selectors = selectors
        self.settings = settings
        self.clock = clock
        self.sleep = sleep

    def _failure_diagnostics(self, reason: str):
        return capture_diagnostics(self.driver, self.selectors, reason, self.settings.screenshot_dir)

    def populate(self, record: ProvisionedResourceRecord, content: str) -> ProvisionedResourceRecord:
        """
        Type ``content`` into the note described by ``record``.

        Args:
            record: A provisioned note.
            content: Plain-text body.

        Returns:
            The same record, with ``item_id`` filled in when it was readable.

        Raises:
            ProvisioningTimeout: Editor or save acknowledgement did not appear.
            NetworkFailure: The save request returned an error status.
            ProvisioningAssertionError: The editor does not show the content.
        """
        if record.kind is not ResourceKind.NOTE:
            raise ValueError(f"Only notes carry content, got {record.kind.value}")

        label = record.resolved_name
        if record.item_id is None:
            record.item_id = self.driver.get_attribute(
                self.selectors.row_for(label, record.parent_name), "data-item-id"
            )

        listener = _SaveListener(record.item_id)
        unsubscribe = self.driver.on_network_response(self.selectors.save_url_pattern, listener)
        try:
            self.driver.click(self.selectors.label_for(label, record.parent_name))
            if record.item_id is not None:
                self._await_selection(label, record.item_id)
            if not self.driver.wait_for(
                self.selectors.editor, state="visible", timeout_ms=self.settings.dialog_timeout_ms
            ):
                raise ProvisioningTimeout(
                    f"Editor for note {label!r} did not open",
                    timeout_ms=self.settings.dialog_timeout_ms,
                    diagnostics=self._failure_diagnostics(f"editor {label}"),
                )

            self.driver.fill(self.selectors.editor, content)
            if self.settings.save_mode == "network":
                self._await_acknowledgement(label, listener)
            else:
                self.sleep(self.settings.save_fallback_delay_ms / 1000)
        finally:
            unsubscribe()

        shown = self.driver.get_text(self.selectors.editor) or ""
        if content.strip() not in shown:
            raise ProvisioningAssertionError(
                f"Editor for {label!r} shows {shown!r}, expected it to contain {content!r}",
                diagnostics=self._failure_diagnostics(f"content {label}"),
            )
        logger.info("Populated note %r (%d chars)", label, len(content))
        return record

    def _await_selection(self, label: str, item_id: str) -> None:
        """
        Wait until the tree marks ``item_id`` as selected.

        The editor of a previously opened note stays on screen until the
        selection switches, so typing before that would edit the wrong note.
        """
        timeout_ms = self.settings.dialog_timeout_ms
        try:
            wait_until(
                lambda: self.driver.get_attribute(self.selectors.selected_item(), "data-item-id") == item_id,
                timeout_ms / 1000,
                interval=self.settings.poll_interval_ms / 1000,
                clock=self.clock,
                sleep=self.sleep,
                description=f"note {label!r} to be selected",
            )
        except WaitTimeout as exc:
            raise ProvisioningTimeout(
                f"Note {label!r} was not selected within {timeout_ms}ms",
                timeout_ms=timeout_ms,
                diagnostics=self._failure_diagnostics(f"select {label}"),
            ) from exc

    def _await_acknowledgement(self, label: str, listener: _SaveListener) -> NetworkResponse:
        timeout_ms = self.settings.save_timeout_ms
        try:
            response = wait_until(
                listener.first,
                timeout_ms / 1000,
                interval=self.settings.poll_interval_ms / 1000,
                clock=self.clock,
                sleep=self.sleep,
                description=f"save acknowledgement for {label!r}",
            )
        except WaitTimeout as exc:
            raise ProvisioningTimeout(
                f"No save acknowledgement for note {label!r} within {timeout_ms}ms",
                timeout_ms=timeout_ms,
                diagnostics=self._failure_diagnostics(f"save {label}"),
            ) from exc

        if not response.ok:
            raise NetworkFailure(
                f"Saving note {label!r} failed with HTTP {response.status}",
                status=response.status,
                diagnostics=self._failure_diagnostics(f"save {label}"),
            )
        logger.debug("Save acknowledged for %r: %s %s", label, response.method, response.url)
        return response
