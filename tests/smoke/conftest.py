"""
Smoke-test fixtures for the Notes & Tasks stack.

Provides the ``smoke_urls`` session-scoped fixture shared across the
smoke suite. URL resolution is delegated to
:func:`shared.live_stack.live_stack_urls`, which reuses a running local
stack or skips the suite when none is reachable.
"""

from __future__ import annotations

import pytest

from shared.live_stack import live_stack_urls


@pytest.fixture(scope="session")
def smoke_urls() -> tuple[str, str]:
    """Return ``(app_url, api_url)`` for smoke tests."""
    return live_stack_urls()
