"""Live-stack helpers for the E2E provisioning suite."""

from __future__ import annotations

import logging
import os
import time

import pytest
import requests

logger = logging.getLogger(__name__)


def is_backend_ready(api_url: str, timeout: int = 2) -> bool:
    """Return True when the backend health endpoint responds with 200."""
    try:
        response = requests.get(f"{api_url}/api/health", timeout=timeout)
    except requests.RequestException:
        return False
    return response.status_code == 200


def is_frontend_ready(app_url: str, timeout: int = 2) -> bool:
    """Return True when the frontend serves its entry page."""
    try:
        response = requests.get(app_url, timeout=timeout)
    except requests.RequestException:
        return False
    return response.status_code < 500


def wait_for_backend_healthy(api_url: str, timeout: int = 60, interval: int = 1) -> None:
    """Poll backend health endpoint until ready or timeout."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if is_backend_ready(api_url):
            logger.info("Backend at %s is ready", api_url)
            return
        time.sleep(interval)
    raise RuntimeError(f"Backend at {api_url} not healthy after {timeout}s")


def live_stack_urls(
    *,
    app_url_env: str = "TEST_BASE_URL",
    api_url_env: str = "TEST_API_BASE_URL",
    app_url_default: str = "http://localhost:5173",
    api_url_default: str = "http://localhost:5001",
) -> tuple[str, str]:
    """
    Return ``(app_url, api_url)`` for a running Notes & Tasks stack.

    Priority:
    1. Explicit URLs from the environment (wait for backend health).
    2. An already-running local stack at the defaults.
    3. Otherwise skip: the suite never starts the application itself.
    """
    app_url = os.getenv(app_url_env)
    api_url = os.getenv(api_url_env)
    if app_url or api_url:
        app_url = (app_url or app_url_default).rstrip("/")
        api_url = (api_url or api_url_default).rstrip("/")
        wait_for_backend_healthy(api_url)
        return app_url, api_url

    if is_backend_ready(api_url_default) and is_frontend_ready(app_url_default):
        return app_url_default, api_url_default

    pytest.skip(
        f"Notes & Tasks stack is not running; set {app_url_env}/{api_url_env} to run E2E tests"
    )
