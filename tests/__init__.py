"""
Test suite for the Notes & Tasks provisioning engine.

This package contains:
- unit/: engine components against the in-memory fake application
- integration/: cleanup and identity clients against a mocked HTTP session
- smoke/: quick checks that a live stack can be provisioned against
- e2e/: Playwright flows that provision through the real UI
- mocks/: the fake application and driver used by unit tests
"""
