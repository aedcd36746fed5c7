"""
Cleanup Coordinator.

Runs once at the end of the test run and removes the identities (and
with them every resource) the run provisioned:

1. **Bulk tier** -- a single administrative ``DELETE`` that wipes all
   test-run data.
2. **Per-identity tier** -- when the bulk call is unavailable or fails,
   log in as each tracked identity and delete its account, with a small
   per-identity retry budget.

The decisive test outcome is already known by the time this runs, so
failures are aggregated into a ``CleanupReport`` instead of raised.

Key Concepts Demonstrated:
- Fast path first, slow-but-universal path second
- Partial failure tolerated and reported
- No destructive calls when the run created nothing
"""

from __future__ import annotations

import logging

import requests

from provisioning.identities import IdentityClient, IdentityError, safe_json
from provisioning.models import (
    CleanupFailure,
    CleanupReport,
    ProvisionedResourceRecord,
    SeedIdentity,
)

logger = logging.getLogger(__name__)


class CleanupCoordinator:
    """Tracks which identities own provisioned data and tears them down."""

    def __init__(
        self,
        api_base_url: str,
        *,
        session: requests.Session | None = None,
        bulk_path: str = "/api/auth/test-cleanup",
        login_path: str = "/api/auth/login",
        account_path: str = "/api/auth/account",
        per_identity_attempts: int = 2,
        timeout: float = 10.0,
    ):
        if per_identity_attempts < 1:
            raise ValueError("per_identity_attempts must be at least 1")
        self.api_base_url = api_base_url.rstrip("/")
        self.session = session or requests.Session()
        self.bulk_path = bulk_path
        self.per_identity_attempts = per_identity_attempts
        self.timeout = timeout
        self.identity_client = IdentityClient(
            api_base_url,
            session=self.session,
            login_path=login_path,
            account_path=account_path,
            timeout=timeout,
        )
        self._owned: dict[str, tuple[SeedIdentity, list[ProvisionedResourceRecord]]] = {}

    # -------------------------------------------------------------------------
    # Tracking
    # -------------------------------------------------------------------------

    def track(self, identity: SeedIdentity, record: ProvisionedResourceRecord | None = None) -> None:
        """Register ``identity`` as owning ``record`` (or data in general)."""
        _, records = self._owned.setdefault(identity.email, (identity, []))
        if record is not None:
            records.append(record)

    @property
    def identities(self) -> list[SeedIdentity]:
        return [identity for identity, _ in self._owned.values()]

    @property
    def records(self) -> list[ProvisionedResourceRecord]:
        return [record for _, records in self._owned.values() for record in records]

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def _bulk_cleanup(self) -> int | None:
        """Return the deleted count, or None if the bulk tier is unavailable."""
        url = f"{self.api_base_url}{self.bulk_path}"
        try:
            response = self.session.delete(url, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Bulk cleanup unavailable (%s): %s", url, exc)
            return None

        if not response.ok:
            logger.warning("Bulk cleanup returned HTTP %s: %s", response.status_code, response.text)
            return None

        deleted = safe_json(response).get("deletedUsers")
        if not isinstance(deleted, int):
            deleted = len(self._owned)
        logger.info("Bulk cleanup removed %d identities", deleted)
        return deleted

    def _delete_identity(self, identity: SeedIdentity) -> str | None:
        """Return None on success, otherwise the last failure reason."""
        reason = None
        for attempt in range(1, self.per_identity_attempts + 1):
            try:
                token = self.identity_client.login(identity)
                self.identity_client.delete_account(token)
            except (IdentityError, requests.RequestException) as exc:
                reason = str(exc)
                logger.warning(
                    "Cleanup attempt %d/%d for %s failed: %s",
                    attempt,
                    self.per_identity_attempts,
                    identity.email,
                    exc,
                )
                continue
            logger.info("Deleted identity %s", identity.email)
            return None
        return reason

    def cleanup_all(self) -> CleanupReport:
        """
        Remove every tracked identity.

        Returns:
            A report; ``report.as_dict()`` gives ``{"deleted", "failed"}``.
        """
        report = CleanupReport()
        if not self._owned:
            logger.info("Nothing was provisioned; skipping cleanup")
            return report

        deleted = self._bulk_cleanup()
        if deleted is not None:
            report.tier = "bulk"
            report.deleted = deleted
        else:
            report.tier = "per-identity"
            for identity in self.identities:
                reason = self._delete_identity(identity)
                if reason is None:
                    report.deleted += 1
                else:
                    report.failed += 1
                    report.failures.append(CleanupFailure(identity=identity.email, reason=reason))

        for failure in report.failures:
            logger.error("Cleanup left %s behind: %s", failure.identity, failure.reason)
        logger.info(
            "Cleanup complete via %s tier: deleted=%d failed=%d",
            report.tier,
            report.deleted,
            report.failed,
        )
        self._owned.clear()
        return report
