"""
Selector catalogue for the Notes & Tasks UI.

Every locator the engine touches lives here so that a markup change is a
one-line fix. Item locators quote labels with JSON string syntax, which
Playwright's ``:text-is()`` accepts.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from provisioning.models import ResourceKind


@dataclass(frozen=True)
class TreeSelectors:
    tree_root: str = 'nav[aria-label="Notes and Tasks Tree"]'
    item_row: str = "li[data-item-id]"
    item_label: str = "div.truncate"
    context_menu: str = '[role="menu"]'
    menu_item: str = '[role="menuitem"]'
    dialog: str = '[role="dialog"]'
    dialog_cancel: str = 'button:has-text("Cancel")'
    dialog_submit: str = 'button[type="submit"]'
    dialog_error: str = "#add-error-message"
    editor: str = ".ProseMirror"
    outside_click_target: str = "body"
    conflict_text: str = "already exists"
    save_url_pattern: str = "/api/items/"
    row_xpath: str = "ancestor::li[@data-item-id][1]"
    selected_row: str = "li[data-item-id]:has(> div.bg-blue-600)"

    def all_item_labels(self) -> str:
        return f"{self.tree_root} {self.item_row} {self.item_label}"

    def labels_under(self, parent: str | None = None) -> str:
        """Every item label, or only those nested inside ``parent``'s row."""
        if parent is None:
            return self.all_item_labels()
        return f"{self.row_for(parent)} >> {self.item_row} {self.item_label}"

    def label_for(self, label: str, parent: str | None = None) -> str:
        """
        Locator for the label element whose text is exactly ``label``.

        Sibling names are only unique per folder, so pass ``parent`` to
        ignore same-named items elsewhere in the tree.
        """
        return f"{self.labels_under(parent)}:text-is({json.dumps(label)})"

    def row_for(self, label: str, parent: str | None = None) -> str:
        """Locator for the nearest tree row (``li``) enclosing ``label``."""
        return f"{self.label_for(label, parent)} >> xpath={self.row_xpath}"

    def selected_item(self) -> str:
        return f"{self.tree_root} {self.selected_row}"

    def name_input(self, kind: ResourceKind) -> str:
        return f'{self.dialog} input[placeholder="Enter {kind.value} name"]'

    def menu_action(self, kind: ResourceKind, *, root: bool) -> str:
        """Context-menu entry that opens the add dialog for ``kind``."""
        if root:
            text = "Add Root Folder"
        else:
            text = f"Add {kind.value.capitalize()} Here"
        return f"{self.context_menu} {self.menu_item}:has-text({json.dumps(text)})"
