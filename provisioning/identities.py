"""
Identity helpers built on the application's auth API.

Used by global setup (make sure seed accounts exist before the UI logs
in) and by the cleanup coordinator's per-identity fallback tier.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from provisioning.models import SeedIdentity

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """An auth API call did not produce the expected result."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


def safe_json(response: requests.Response) -> dict[str, Any]:
    """Return response JSON as dict, or an empty dict if parsing fails."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def auth_headers(token: str) -> dict[str, str]:
    """Build common JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


class IdentityClient:
    """
    Thin client for register / login / delete-account calls.

    Attributes:
        api_base_url: Backend origin, e.g. ``http://localhost:5001``.
        session: ``requests.Session`` used for every call.
    """

    def __init__(
        self,
        api_base_url: str,
        *,
        session: requests.Session | None = None,
        register_path: str = "/api/auth/register",
        login_path: str = "/api/auth/login",
        account_path: str = "/api/auth/account",
        timeout: float = 10.0,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.register_path = register_path
        self.login_path = login_path
        self.account_path = account_path
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.api_base_url}{path}"

    def ensure_registered(self, identity: SeedIdentity) -> bool:
        """
        Register ``identity``, treating "already exists" as success.

        Returns:
            True if the account was created, False if it already existed.

        Raises:
            IdentityError: For any other rejection.
        """
        response = self.session.post(
            self._url(self.register_path),
            json={"email": identity.email, "password": identity.password},
            timeout=self.timeout,
        )
        if response.ok:
            logger.info("Created seed identity %s", identity.email)
            return True

        message = str(safe_json(response).get("error", response.text))
        if "already exists" in message.lower():
            logger.info("Seed identity %s already exists", identity.email)
            return False
        raise IdentityError(
            f"Could not register {identity.email}: HTTP {response.status_code} {message}",
            status=response.status_code,
        )

    def login(self, identity: SeedIdentity) -> str:
        """Log in and return the access token."""
        response = self.session.post(
            self._url(self.login_path),
            json={"email": identity.email, "password": identity.password},
            timeout=self.timeout,
        )
        if not response.ok:
            raise IdentityError(
                f"Login failed for {identity.email}: HTTP {response.status_code}",
                status=response.status_code,
            )
        body = safe_json(response)
        token = body.get("accessToken") or body.get("token")
        if not isinstance(token, str) or not token:
            raise IdentityError(f"Login response for {identity.email} has no access token")
        return token

    def delete_account(self, token: str) -> None:
        response = self.session.delete(
            self._url(self.account_path),
            headers=auth_headers(token),
            timeout=self.timeout,
        )
        if not response.ok:
            raise IdentityError(
                f"Account deletion failed: HTTP {response.status_code} {response.text}",
                status=response.status_code,
            )
