"""
Provisioning Engine.

The surface test authors use to create folders, notes and tasks as test
preconditions. Every request flows through the same path regardless of
kind:

    engine -> ConflictRetryController -> CreationOrchestrator
           -> (NameSequence, ItemExistenceOracle, ReadinessPoller)

and returns the label the item actually received. Notes and tasks
requested without a parent get a synthetic container folder first,
unless ``synthetic_parents`` is switched off.

Key Concepts Demonstrated:
- One module keyed by resource kind instead of per-kind helpers
- Idempotent "create if absent" mode keyed on the original request
- Tracking ownership so suite-level cleanup knows what to remove
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from provisioning.cleanup import CleanupCoordinator
from provisioning.content import ContentPopulator
from provisioning.driver import NativeDialog, UIDriver
from provisioning.errors import ContainmentError, ProvisioningTimeout
from provisioning.models import (
    ProvisionedResourceRecord,
    ResourceKind,
    ResourceSpec,
    SeedIdentity,
)
from provisioning.names import NameSequence
from provisioning.oracle import ItemExistenceOracle
from provisioning.orchestrator import CreationOrchestrator
from provisioning.retry import ConflictRetryController
from provisioning.selectors import TreeSelectors
from provisioning.settings import ProvisioningSettings
from provisioning.waiting import ReadinessPoller

logger = logging.getLogger(__name__)

_RecordKey = tuple[ResourceKind, str, "str | None"]


class ProvisioningEngine:
    """
    Creates hierarchical test data through the Notes & Tasks UI.

    Attributes:
        driver: UI session the engine acts on.
        settings: Timeouts, retry budget and policy flags.
        names: Label sequence owned by this engine.
        owner: Identity logged into ``driver``; recorded on every resource.
        cleanup: Coordinator that is told about every provisioned record.
    """

    def __init__(
        self,
        driver: UIDriver,
        settings: ProvisioningSettings | None = None,
        *,
        selectors: TreeSelectors | None = None,
        names: NameSequence | None = None,
        owner: SeedIdentity | None = None,
        cleanup: CleanupCoordinator | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] | None = None,
    ):
        self.driver = driver
        self.settings = settings or ProvisioningSettings()
        self.selectors = selectors or TreeSelectors()
        self.names = names or NameSequence()
        self.owner = owner
        self.cleanup = cleanup
        sleep = sleep or driver.pause

        self.oracle = ItemExistenceOracle(driver, self.selectors)
        self.poller = ReadinessPoller(
            driver,
            self.selectors,
            poll_interval_ms=self.settings.poll_interval_ms,
            screenshot_dir=self.settings.screenshot_dir,
            clock=clock,
            sleep=sleep,
        )
        self.orchestrator = CreationOrchestrator(
            driver,
            self.selectors,
            self.settings,
            oracle=self.oracle,
            poller=self.poller,
            clock=clock,
            sleep=sleep,
        )
        self.retry = ConflictRetryController(
            self.orchestrator,
            self.names,
            max_attempts=self.settings.max_conflict_attempts,
            backoff_seconds=self.settings.conflict_backoff_seconds,
            backoff_factor=self.settings.conflict_backoff_factor,
            sleep=sleep,
        )
        self.content = ContentPopulator(driver, self.selectors, self.settings, clock=clock, sleep=sleep)

        self._records: list[ProvisionedResourceRecord] = []
        self._by_request: dict[_RecordKey, ProvisionedResourceRecord] = {}
        driver.on_native_dialog(self._dismiss_native_dialog)

    # -------------------------------------------------------------------------
    # Session helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _dismiss_native_dialog(dialog: NativeDialog) -> None:
        logger.warning("Dismissing unexpected native %s dialog: %s", dialog.type, dialog.message)
        dialog.dismiss()

    def open_app(self) -> ProvisioningEngine:
        """Navigate to the tree view and wait for it to render."""
        self.driver.navigate(self.settings.app_path)
        if not self.driver.wait_for(
            self.selectors.tree_root, state="visible", timeout_ms=self.settings.readiness_timeout_ms
        ):
            raise ProvisioningTimeout(
                "Tree view did not render", timeout_ms=self.settings.readiness_timeout_ms
            )
        return self

    def wait_until_ready(self, label: str, timeout_ms: int | None = None, parent: str | None = None) -> bool:
        """Block until ``label`` is present and visible in the tree (under ``parent`` if given)."""
        if timeout_ms is None:
            timeout_ms = self.settings.readiness_timeout_ms
        return self.poller.wait_until_ready(label, timeout_ms, parent=parent)

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    @property
    def records(self) -> list[ProvisionedResourceRecord]:
        return list(self._records)

    def record_for(self, name: str) -> ProvisionedResourceRecord | None:
        """Latest record whose resolved or requested name is ``name``."""
        for record in reversed(self._records):
            if record.resolved_name == name:
                return record
        for record in reversed(self._records):
            if record.spec.requested_name == name:
                return record
        return None

    def resolve_parent(self, parent_ref: str | None) -> str | None:
        """
        Map a parent reference to an exact tree label.

        A reference matching an earlier folder's requested name resolves
        to that folder's generated label; anything else is taken as a
        literal label already present in the tree.
        """
        if parent_ref is None:
            return None
        for record in reversed(self._records):
            if record.kind is ResourceKind.FOLDER and record.resolved_name == parent_ref:
                return record.resolved_name
        for record in reversed(self._records):
            if record.kind is ResourceKind.FOLDER and record.spec.requested_name == parent_ref:
                return record.resolved_name
        return parent_ref

    # -------------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------------

    def _synthetic_parent_for(self, spec: ResourceSpec) -> ProvisionedResourceRecord:
        if not self.settings.synthetic_parents:
            raise ContainmentError(
                f"{spec.kind.value.capitalize()} {spec.requested_name!r} needs a parent folder "
                "and synthetic parents are disabled"
            )
        logger.info("Creating synthetic parent for root-level %s %r", spec.kind.value, spec.requested_name)
        return self.provision(ResourceSpec(ResourceKind.FOLDER, self.settings.synthetic_parent_prefix))

    def provision(self, spec: ResourceSpec, *, idempotent: bool = False) -> ProvisionedResourceRecord:
        """
        Create the resource described by ``spec``.

        Args:
            spec: What to create.
            idempotent: Reuse an earlier record for the same request while
                its label is still in the tree.

        Returns:
            The record of the created (or reused) resource.
        """
        key: _RecordKey = (spec.kind, spec.requested_name, spec.parent_ref)
        if idempotent:
            existing = self._by_request.get(key)
            if existing is not None and self.oracle.exists(
                existing.resolved_name, existing.parent_name
            ):
                logger.info("Reusing %s %r", spec.kind.value, existing.resolved_name)
                return existing

        parent_name = self.resolve_parent(spec.parent_ref)
        synthetic_parent = None
        if parent_name is None and spec.kind.is_leaf:
            synthetic_parent = self._synthetic_parent_for(spec)
            parent_name = synthetic_parent.resolved_name

        attempt = self.retry.create(spec.kind, spec.requested_name, parent_name)
        record = ProvisionedResourceRecord(
            spec=spec,
            resolved_name=attempt.label,
            parent_name=parent_name,
            parent_synthetic=synthetic_parent is not None,
            synthetic_parent=synthetic_parent,
            item_id=attempt.item_id,
            owner=self.owner,
        )
        self._records.append(record)
        self._by_request[key] = record
        if self.cleanup is not None and self.owner is not None:
            self.cleanup.track(self.owner, record)

        if spec.content:
            self.content.populate(record, spec.content)
        return record

    def provision_folder(self, name: str, parent: str | None = None, *, idempotent: bool = False) -> str:
        spec = ResourceSpec(ResourceKind.FOLDER, name, parent_ref=parent)
        return self.provision(spec, idempotent=idempotent).resolved_name

    def provision_note(
        self,
        name: str,
        content: str | None = None,
        parent: str | None = None,
        *,
        idempotent: bool = False,
    ) -> str:
        spec = ResourceSpec(ResourceKind.NOTE, name, parent_ref=parent, content=content)
        return self.provision(spec, idempotent=idempotent).resolved_name

    def provision_task(self, name: str, parent: str | None = None, *, idempotent: bool = False) -> str:
        spec = ResourceSpec(ResourceKind.TASK, name, parent_ref=parent)
        return self.provision(spec, idempotent=idempotent).resolved_name

    def seed(self, specs: Iterable[ResourceSpec]) -> list[ProvisionedResourceRecord]:
        """
        Provision several resources strictly in the given order.

        Later specs may name earlier ones as ``parent_ref`` by their
        requested name.
        """
        return [self.provision(spec) for spec in specs]

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def cleanup_all(self) -> dict[str, int]:
        """Run suite-level cleanup; returns ``{"deleted": n, "failed": m}``."""
        if self.cleanup is None:
            logger.info("No cleanup coordinator configured; nothing to remove")
            return {"deleted": 0, "failed": 0}
        report = self.cleanup.cleanup_all()
        self._records.clear()
        self._by_request.clear()
        return report.as_dict()
