"""
Test doubles for the provisioning engine.

``notes_app`` simulates the Notes & Tasks UI so engine logic can be
tested without a browser:
- Isolates units under test from Playwright
- Injects conflicts, backend errors and slow rendering on demand
- Keeps time deterministic through a fake clock
"""
