"""
Polling primitives.

``wait_until`` is a driver-agnostic "poll a predicate until truthy or
time out" loop; clock and sleep are injectable so it runs against fake
state sources in unit tests. ``ReadinessPoller`` builds on it to decide
when a freshly created tree item is usable by UI assertions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from provisioning.diagnostics import capture_diagnostics
from provisioning.driver import UIDriver
from provisioning.errors import ProvisioningTimeout
from provisioning.selectors import TreeSelectors

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WaitTimeout(Exception):
    """Raised by ``wait_until`` when the predicate never became truthy."""

    def __init__(self, description: str, timeout: float, polls: int):
        super().__init__(f"Timed out after {timeout:.3f}s ({polls} polls) waiting for {description}")
        self.description = description
        self.timeout = timeout
        self.polls = polls


def wait_until(
    predicate: Callable[[], T],
    timeout: float,
    *,
    interval: float = 0.1,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "condition",
) -> T:
    """
    Poll ``predicate`` until it returns a truthy value.

    The predicate is always evaluated at least once, and once more at the
    deadline, so a zero timeout still performs a single check.

    Args:
        predicate: Zero-argument callable evaluated on every tick.
        timeout: Budget in seconds.
        interval: Delay between ticks in seconds.
        clock: Monotonic time source.
        sleep: Blocking delay function.
        description: Used in the timeout message.

    Returns:
        The first truthy value returned by ``predicate``.

    Raises:
        WaitTimeout: If the budget expires first.
    """
    deadline = clock() + timeout
    polls = 0
    while True:
        polls += 1
        result = predicate()
        if result:
            return result
        remaining = deadline - clock()
        if remaining <= 0:
            raise WaitTimeout(description, timeout, polls)
        sleep(min(interval, remaining))


class ReadinessPoller:
    """
    Waits for a tree item to be present *and* visible.

    Presence in application data is not enough: provisioning exists to
    support UI-level assertions, so the item's label must be laid out
    with non-zero, unhidden geometry.
    """

    def __init__(
        self,
        driver: UIDriver,
        selectors: TreeSelectors,
        *,
        poll_interval_ms: int = 100,
        screenshot_dir: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.driver = driver
        self.selectors = selectors
        self.poll_interval_ms = poll_interval_ms
        self.screenshot_dir = screenshot_dir
        self.clock = clock
        self.sleep = sleep

    def is_ready(self, label: str, parent: str | None = None) -> bool:
        locator = self.selectors.label_for(label, parent)
        if not self.driver.is_visible(locator):
            return False
        box = self.driver.bounding_box(locator)
        return bool(box) and box["width"] > 0 and box["height"] > 0

    def wait_until_ready(self, label: str, timeout_ms: int, parent: str | None = None) -> bool:
        """
        Block until ``label`` is ready.

        Args:
            label: Exact item label.
            timeout_ms: Budget in milliseconds.
            parent: Label of the containing folder. Only an item nested
                under it counts, so a same-named item elsewhere in the
                tree cannot satisfy the wait.

        Returns:
            True once the item is ready.

        Raises:
            ProvisioningTimeout: With diagnostics, if the budget expires.
        """
        try:
            wait_until(
                lambda: self.is_ready(label, parent),
                timeout_ms / 1000,
                interval=self.poll_interval_ms / 1000,
                clock=self.clock,
                sleep=self.sleep,
                description=f"item {label!r} to be visible",
            )
        except WaitTimeout as exc:
            diagnostics = capture_diagnostics(
                self.driver, self.selectors, f"readiness {label}", self.screenshot_dir
            )
            raise ProvisioningTimeout(
                f"Item {label!r} was not ready within {timeout_ms}ms",
                timeout_ms=timeout_ms,
                diagnostics=diagnostics,
            ) from exc
        logger.debug("Item %r is ready", label)
        return True
