"""
Playwright fixtures for live provisioning E2E tests.

Session lifecycle:
1. Find a running stack (``shared.live_stack``) or skip the suite.
2. Global setup: make sure every seed identity exists.
3. Per test: log in through the UI and hand out an engine bound to the
   page. Provisioned records are tracked against the logged-in identity.
4. Global teardown: one ``cleanup_all()`` for the whole run.
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Generator

import pytest
import requests
from playwright.sync_api import Browser, BrowserContext, Page

from config import get_config
from provisioning.cleanup import CleanupCoordinator
from provisioning.driver import PlaywrightDriver
from provisioning.engine import ProvisioningEngine
from provisioning.identities import IdentityClient
from provisioning.models import SeedIdentity
from provisioning.names import NameSequence
from provisioning.settings import ProvisioningSettings
from shared.live_stack import live_stack_urls
from tests.e2e.pages.login_page import LoginPage
from tests.e2e.pages.tree_page import TreePage

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def test_run_id() -> str:
    """Unique id for current E2E run to avoid label collisions between runs."""
    return uuid.uuid4().hex[:8]


@pytest.fixture(scope="session")
def live_server() -> tuple[str, str]:
    """Return ``(app_url, api_url)`` of a running stack, or skip."""
    return live_stack_urls()


@pytest.fixture(scope="session")
def settings(live_server: tuple[str, str]) -> ProvisioningSettings:
    app_url, api_url = live_server
    return ProvisioningSettings.from_config(get_config(), base_url=app_url, api_base_url=api_url)


@pytest.fixture(scope="session")
def http_session() -> Generator[requests.Session, None, None]:
    session = requests.Session()
    yield session
    session.close()


@pytest.fixture(scope="session")
def seed_identities(settings: ProvisioningSettings, http_session: requests.Session) -> list[SeedIdentity]:
    """Global setup: register every seed identity, tolerating existing accounts."""
    client = IdentityClient(
        settings.api_base_url,
        session=http_session,
        register_path=settings.cleanup_register_path,
        login_path=settings.cleanup_login_path,
        account_path=settings.cleanup_account_path,
        timeout=settings.http_timeout_seconds,
    )
    for identity in settings.seed_identities:
        client.ensure_registered(identity)
    return list(settings.seed_identities)


@pytest.fixture(scope="session")
def cleanup_coordinator(
    settings: ProvisioningSettings, http_session: requests.Session
) -> Generator[CleanupCoordinator, None, None]:
    """Global teardown: remove everything the run provisioned, once."""
    coordinator = CleanupCoordinator(
        settings.api_base_url,
        session=http_session,
        bulk_path=settings.cleanup_bulk_path,
        login_path=settings.cleanup_login_path,
        account_path=settings.cleanup_account_path,
        per_identity_attempts=settings.cleanup_per_identity_attempts,
        timeout=settings.http_timeout_seconds,
    )
    yield coordinator
    report = coordinator.cleanup_all()
    logger.info("E2E cleanup report: %s", report.as_dict())


@pytest.fixture(scope="session")
def browser_context_args():
    return {
        "viewport": {"width": 1280, "height": 720},
        "ignore_https_errors": True,
    }


@pytest.fixture(scope="function")
def context(browser: Browser, browser_context_args: dict) -> Generator[BrowserContext, None, None]:
    context = browser.new_context(**browser_context_args)
    yield context
    context.close()


@pytest.fixture(scope="function")
def page(context: BrowserContext) -> Generator[Page, None, None]:
    page = context.new_page()
    yield page
    page.close()


@pytest.fixture
def seed_identity(seed_identities: list[SeedIdentity]) -> SeedIdentity:
    if not seed_identities:
        pytest.skip("No seed identities configured")
    return seed_identities[0]


@pytest.fixture
def authenticated_page(page: Page, settings: ProvisioningSettings, seed_identity: SeedIdentity) -> Page:
    """Log the seed identity in through the UI."""
    LoginPage(page, settings.base_url).navigate().login(seed_identity.email, seed_identity.password)
    return page


@pytest.fixture
def engine(
    authenticated_page: Page,
    settings: ProvisioningSettings,
    seed_identity: SeedIdentity,
    cleanup_coordinator: CleanupCoordinator,
    test_run_id: str,
) -> ProvisioningEngine:
    """Engine bound to the logged-in page; labels carry the run id."""
    driver = PlaywrightDriver(authenticated_page, settings.base_url)
    return ProvisioningEngine(
        driver,
        settings,
        names=NameSequence(namespace=f"{test_run_id}-"),
        owner=seed_identity,
        cleanup=cleanup_coordinator,
    )


@pytest.fixture
def tree_page(authenticated_page: Page, settings: ProvisioningSettings) -> TreePage:
    return TreePage(authenticated_page, settings.base_url)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Capture screenshot on UI test failure."""
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        page = item.funcargs.get("page")
        if page:
            screenshot_dir = get_config().SCREENSHOT_DIR
            os.makedirs(screenshot_dir, exist_ok=True)
            test_name = item.name.replace("/", "_").replace("::", "_")
            screenshot_path = f"{screenshot_dir}/{test_name}.png"
            try:
                page.screenshot(path=screenshot_path)
                print(f"\nScreenshot saved: {screenshot_path}")
            except Exception as exc:  # pragma: no cover - best effort logging
                print(f"\nFailed to capture screenshot: {exc}")
