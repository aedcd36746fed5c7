"""
Live browser tests for the provisioning engine.

Uses Playwright with the Page Object Model for assertions and the
provisioning engine for test preconditions. Skipped unless a Notes &
Tasks stack is reachable.
"""
