"""
Page objects for the Notes & Tasks UI.

The provisioning engine creates data through the tree; these page
objects are only used by tests to log in and to assert on what the
engine produced.
"""

from tests.e2e.pages.base_page import BasePage
from tests.e2e.pages.login_page import LoginPage
from tests.e2e.pages.tree_page import TreePage

__all__ = ["BasePage", "LoginPage", "TreePage"]
