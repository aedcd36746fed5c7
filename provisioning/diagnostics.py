"""Diagnostic bundles attached to hard provisioning failures."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from provisioning.driver import UIDriver
from provisioning.selectors import TreeSelectors

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass
class DiagnosticBundle:
    """
    Snapshot of the UI at the moment a provisioning step failed.

    Attributes:
        reason: Short description of what was being waited for.
        tree_dump: Text content of the tree container.
        labels: Item labels rendered at capture time.
        screenshot_path: Where the screenshot was written, if it succeeded.
    """

    reason: str
    tree_dump: str = ""
    labels: list[str] = field(default_factory=list)
    screenshot_path: str | None = None
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _screenshot_name(reason: str, captured_at: datetime) -> str:
    slug = _UNSAFE_CHARS.sub("_", reason).strip("_")[:60] or "failure"
    return f"provisioning-{slug}-{captured_at.strftime('%Y%m%dT%H%M%S%f')}.png"


def capture_diagnostics(
    driver: UIDriver,
    selectors: TreeSelectors,
    reason: str,
    screenshot_dir: str | None = None,
) -> DiagnosticBundle:
    """
    Collect a tree-state dump and a screenshot.

    Capture problems are logged and never raised, so the original
    failure always reaches the caller.
    """
    bundle = DiagnosticBundle(reason=reason)
    try:
        bundle.tree_dump = driver.get_text(selectors.tree_root) or ""
        bundle.labels = [label.strip() for label in driver.all_texts(selectors.all_item_labels())]
    except Exception as exc:  # pragma: no cover - best effort logging
        logger.warning("Could not dump tree state for %r: %s", reason, exc)

    if screenshot_dir:
        try:
            os.makedirs(screenshot_dir, exist_ok=True)
            path = os.path.join(screenshot_dir, _screenshot_name(reason, bundle.captured_at))
            bundle.screenshot_path = driver.screenshot(path)
        except Exception as exc:  # pragma: no cover - best effort logging
            logger.warning("Could not capture screenshot for %r: %s", reason, exc)

    logger.error(
        "Provisioning failure: %s | tree labels=%s | screenshot=%s",
        reason,
        bundle.labels,
        bundle.screenshot_path,
    )
    return bundle
