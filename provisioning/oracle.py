"""Exact-label presence checks against the rendered tree."""

from __future__ import annotations

from provisioning.driver import UIDriver
from provisioning.selectors import TreeSelectors


class ItemExistenceOracle:
    """
    Answers "is this label in the tree right now?" from rendered text.

    With a ``parent`` the question is asked of that folder's subtree only.
    """

    def __init__(self, driver: UIDriver, selectors: TreeSelectors):
        self.driver = driver
        self.selectors = selectors

    def labels(self, parent: str | None = None) -> list[str]:
        return [text.strip() for text in self.driver.all_texts(self.selectors.labels_under(parent))]

    def count(self, label: str, parent: str | None = None) -> int:
        wanted = label.strip()
        return sum(1 for text in self.labels(parent) if text == wanted)

    def exists(self, label: str, parent: str | None = None) -> bool:
        return self.count(label, parent) > 0
