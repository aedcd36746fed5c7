"""
UI driver boundary.

The engine only talks to the application through ``UIDriver``. The
production implementation wraps a Playwright sync ``Page``; unit tests
substitute an in-memory fake. Locators are Playwright selector strings.

Key Concepts Demonstrated:
- Protocol-based seam between orchestration logic and the browser
- Translating Playwright timeouts into plain boolean wait results
- Typed network response snapshots for save acknowledgement
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkResponse:
    """Snapshot of a network response observed by the driver."""

    url: str
    method: str
    status: int

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400


class NativeDialog(Protocol):
    """Browser-native confirm/alert/prompt, as exposed by Playwright."""

    type: str
    message: str

    def accept(self, prompt_text: str | None = None) -> None: ...

    def dismiss(self) -> None: ...


class UIDriver(Protocol):
    """Capabilities the engine consumes from a UI session."""

    def navigate(self, url: str) -> None: ...

    def click(
        self,
        locator: str,
        *,
        button: str = "left",
        position: dict[str, float] | None = None,
    ) -> None: ...

    def fill(self, locator: str, text: str) -> None: ...

    def press_key(self, key: str) -> None: ...

    def wait_for(self, locator: str, *, state: str = "visible", timeout_ms: int = 5000) -> bool: ...

    def get_text(self, locator: str) -> str | None: ...

    def all_texts(self, locator: str) -> list[str]: ...

    def is_visible(self, locator: str) -> bool: ...

    def bounding_box(self, locator: str) -> dict[str, float] | None: ...

    def get_attribute(self, locator: str, name: str) -> str | None: ...

    def on_native_dialog(self, handler: Callable[[NativeDialog], None]) -> None: ...

    def on_network_response(
        self, url_pattern: str, handler: Callable[[NetworkResponse], None]
    ) -> Callable[[], None]: ...

    def pause(self, seconds: float) -> None: ...

    def screenshot(self, path: str) -> str: ...


class PlaywrightDriver:
    """
    ``UIDriver`` backed by a Playwright sync ``Page``.

    Attributes:
        page: Playwright page instance.
        base_url: Base URL used to resolve relative navigation paths.
    """

    def __init__(self, page: Page, base_url: str = ""):
        self.page = page
        self.base_url = base_url.rstrip("/")

    def _first(self, locator: str):
        return self.page.locator(locator).first

    def navigate(self, url: str) -> None:
        if url.startswith("/"):
            url = f"{self.base_url}{url}"
        self.page.goto(url)
        self.page.wait_for_load_state("networkidle")

    def click(
        self,
        locator: str,
        *,
        button: str = "left",
        position: dict[str, float] | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {"button": button}
        if position is not None:
            kwargs["position"] = position
        self._first(locator).click(**kwargs)

    def fill(self, locator: str, text: str) -> None:
        self._first(locator).fill(text)

    def press_key(self, key: str) -> None:
        self.page.keyboard.press(key)

    def wait_for(self, locator: str, *, state: str = "visible", timeout_ms: int = 5000) -> bool:
        try:
            self._first(locator).wait_for(state=state, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Timed out after %sms waiting for %s to be %s", timeout_ms, locator, state)
            return False
        return True

    def get_text(self, locator: str) -> str | None:
        target = self.page.locator(locator)
        if target.count() == 0:
            return None
        return target.first.text_content()

    def all_texts(self, locator: str) -> list[str]:
        return self.page.locator(locator).all_text_contents()

    def is_visible(self, locator: str) -> bool:
        return self._first(locator).is_visible()

    def bounding_box(self, locator: str) -> dict[str, float] | None:
        target = self.page.locator(locator)
        if target.count() == 0:
            return None
        return target.first.bounding_box()

    def get_attribute(self, locator: str, name: str) -> str | None:
        target = self.page.locator(locator)
        if target.count() == 0:
            return None
        return target.first.get_attribute(name)

    def on_native_dialog(self, handler: Callable[[NativeDialog], None]) -> None:
        self.page.on("dialog", handler)

    def on_network_response(
        self, url_pattern: str, handler: Callable[[NetworkResponse], None]
    ) -> Callable[[], None]:
        pattern = re.compile(re.escape(url_pattern))

        def _listener(response) -> None:
            if not pattern.search(response.url):
                return
            handler(
                NetworkResponse(
                    url=response.url,
                    method=response.request.method,
                    status=response.status,
                )
            )

        self.page.on("response", _listener)
        return lambda: self.page.remove_listener("response", _listener)

    def pause(self, seconds: float) -> None:
        # wait_for_timeout keeps dispatching page events, unlike time.sleep
        self.page.wait_for_timeout(seconds * 1000)

    def screenshot(self, path: str) -> str:
        self.page.screenshot(path=path)
        return path
