"""Engine settings derived from the environment config classes."""

from __future__ import annotations

from dataclasses import dataclass, field

from provisioning.models import SeedIdentity


@dataclass(frozen=True)
class ProvisioningSettings:
    """
    Tunables for one engine instance.

    All ``*_ms`` values are milliseconds; ``conflict_backoff_seconds`` and
    ``http_timeout_seconds`` are seconds.
    """

    base_url: str = "http://localhost:5173"
    api_base_url: str = "http://localhost:5001"
    app_path: str = "/"
    menu_timeout_ms: int = 3000
    dialog_timeout_ms: int = 5000
    submit_timeout_ms: int = 10000
    readiness_timeout_ms: int = 10000
    save_timeout_ms: int = 5000
    poll_interval_ms: int = 100
    dismiss_timeout_ms: int = 500
    max_conflict_attempts: int = 3
    conflict_backoff_seconds: float = 0.25
    conflict_backoff_factor: float = 2.0
    synthetic_parents: bool = True
    synthetic_parent_prefix: str = "Container"
    save_mode: str = "network"
    save_fallback_delay_ms: int = 1500
    cleanup_bulk_path: str = "/api/auth/test-cleanup"
    cleanup_login_path: str = "/api/auth/login"
    cleanup_register_path: str = "/api/auth/register"
    cleanup_account_path: str = "/api/auth/account"
    cleanup_per_identity_attempts: int = 2
    http_timeout_seconds: float = 10.0
    seed_identities: tuple[SeedIdentity, ...] = field(default_factory=tuple)
    screenshot_dir: str | None = "test-results/screenshots"

    def __post_init__(self) -> None:
        if self.max_conflict_attempts < 1:
            raise ValueError("max_conflict_attempts must be at least 1")
        if self.save_mode not in {"network", "delay"}:
            raise ValueError(f"save_mode must be 'network' or 'delay', got {self.save_mode!r}")
        if self.cleanup_per_identity_attempts < 1:
            raise ValueError("cleanup_per_identity_attempts must be at least 1")

    @classmethod
    def from_config(cls, config: type, **overrides) -> ProvisioningSettings:
        """
        Build settings from a ``config.Config`` subclass.

        Args:
            config: Configuration class (see ``config.get_config``).
            **overrides: Field values that take precedence over the config.

        Returns:
            A frozen settings instance.
        """
        values = dict(
            base_url=config.BASE_URL,
            api_base_url=config.API_BASE_URL,
            app_path=config.APP_PATH,
            menu_timeout_ms=config.MENU_TIMEOUT_MS,
            dialog_timeout_ms=config.DIALOG_TIMEOUT_MS,
            submit_timeout_ms=config.SUBMIT_TIMEOUT_MS,
            readiness_timeout_ms=config.READINESS_TIMEOUT_MS,
            save_timeout_ms=config.SAVE_TIMEOUT_MS,
            poll_interval_ms=config.POLL_INTERVAL_MS,
            max_conflict_attempts=config.MAX_CONFLICT_ATTEMPTS,
            conflict_backoff_seconds=config.CONFLICT_BACKOFF_SECONDS,
            synthetic_parents=config.SYNTHETIC_PARENTS,
            save_mode=config.SAVE_MODE,
            save_fallback_delay_ms=config.SAVE_FALLBACK_DELAY_MS,
            cleanup_bulk_path=config.CLEANUP_BULK_PATH,
            cleanup_login_path=config.CLEANUP_LOGIN_PATH,
            cleanup_register_path=config.CLEANUP_REGISTER_PATH,
            cleanup_account_path=config.CLEANUP_ACCOUNT_PATH,
            cleanup_per_identity_attempts=config.CLEANUP_PER_IDENTITY_ATTEMPTS,
            http_timeout_seconds=config.HTTP_TIMEOUT_SECONDS,
            seed_identities=tuple(
                SeedIdentity(email=email, password=password)
                for email, password in config.SEED_IDENTITIES
            ),
            screenshot_dir=config.SCREENSHOT_DIR,
        )
        values.update(overrides)
        return cls(**values)
