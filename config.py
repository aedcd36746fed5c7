"""
Test-run configuration module.

This module defines configuration classes for the environments the
provisioning engine runs in (local, ci, testing). Configuration values
are loaded from environment variables with sensible defaults.
"""

import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_identities(name: str, default: str) -> list[tuple[str, str]]:
    """Parse ``email:password`` pairs separated by commas."""
    raw = os.environ.get(name, default)
    identities = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        email, _, password = chunk.partition(":")
        identities.append((email.strip(), password.strip()))
    return identities


class Config:
    """Base configuration with default settings."""

    BASE_URL: str = os.environ.get("BASE_URL", "http://localhost:5173")
    API_BASE_URL: str = os.environ.get("API_BASE_URL", "http://localhost:5001")
    APP_PATH: str = os.environ.get("APP_PATH", "/")

    # UI wait budgets (milliseconds)
    MENU_TIMEOUT_MS: int = _env_int("MENU_TIMEOUT_MS", 3000)
    DIALOG_TIMEOUT_MS: int = _env_int("DIALOG_TIMEOUT_MS", 5000)
    SUBMIT_TIMEOUT_MS: int = _env_int("SUBMIT_TIMEOUT_MS", 10000)
    READINESS_TIMEOUT_MS: int = _env_int("READINESS_TIMEOUT_MS", 10000)
    SAVE_TIMEOUT_MS: int = _env_int("SAVE_TIMEOUT_MS", 5000)
    POLL_INTERVAL_MS: int = _env_int("POLL_INTERVAL_MS", 100)

    # Conflict handling
    MAX_CONFLICT_ATTEMPTS: int = _env_int("MAX_CONFLICT_ATTEMPTS", 3)
    CONFLICT_BACKOFF_SECONDS: float = float(os.environ.get("CONFLICT_BACKOFF_SECONDS", 0.25))

    # Root-level notes/tasks get an intermediate folder
    SYNTHETIC_PARENTS: bool = _env_bool("SYNTHETIC_PARENTS", True)

    # "network" waits for the PATCH acknowledgement, "delay" sleeps instead.
    # The editor debounces saves by 1000ms.
    SAVE_MODE: str = os.environ.get("SAVE_MODE", "network")
    SAVE_FALLBACK_DELAY_MS: int = _env_int("SAVE_FALLBACK_DELAY_MS", 1500)

    # Cleanup endpoints (relative to API_BASE_URL)
    CLEANUP_BULK_PATH: str = os.environ.get("CLEANUP_BULK_PATH", "/api/auth/test-cleanup")
    CLEANUP_LOGIN_PATH: str = os.environ.get("CLEANUP_LOGIN_PATH", "/api/auth/login")
    CLEANUP_REGISTER_PATH: str = os.environ.get("CLEANUP_REGISTER_PATH", "/api/auth/register")
    CLEANUP_ACCOUNT_PATH: str = os.environ.get("CLEANUP_ACCOUNT_PATH", "/api/auth/account")
    CLEANUP_PER_IDENTITY_ATTEMPTS: int = _env_int("CLEANUP_PER_IDENTITY_ATTEMPTS", 2)
    HTTP_TIMEOUT_SECONDS: float = float(os.environ.get("HTTP_TIMEOUT_SECONDS", 10))

    SEED_IDENTITIES: list[tuple[str, str]] = _env_identities(
        "SEED_IDENTITIES",
        "test@e2e.com:password123,admin@e2e.com:password123,user@e2e.com:password123",
    )

    SCREENSHOT_DIR: str = os.environ.get(
        "SCREENSHOT_DIR", str(BASE_DIR / "test-results" / "screenshots")
    )


class LocalConfig(Config):
    """Local developer machine configuration."""

    DEBUG: bool = True


class CIConfig(Config):
    """CI configuration with wider wait budgets for slower runners."""

    DEBUG: bool = False
    SUBMIT_TIMEOUT_MS: int = _env_int("SUBMIT_TIMEOUT_MS", 20000)
    READINESS_TIMEOUT_MS: int = _env_int("READINESS_TIMEOUT_MS", 20000)
    SAVE_TIMEOUT_MS: int = _env_int("SAVE_TIMEOUT_MS", 10000)
    MAX_CONFLICT_ATTEMPTS: int = _env_int("MAX_CONFLICT_ATTEMPTS", 5)


class TestingConfig(Config):
    """Configuration for the engine's own unit tests (fake application)."""

    __test__ = False

    DEBUG: bool = True
    POLL_INTERVAL_MS: int = 50
    CONFLICT_BACKOFF_SECONDS: float = 0.0
    SAVE_FALLBACK_DELAY_MS: int = 10


# Configuration mapping for easy access
config = {
    "local": LocalConfig,
    "ci": CIConfig,
    "testing": TestingConfig,
    "default": LocalConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (local, ci, testing).
             If None, uses E2E_ENV, falling back to "ci" when CI is set.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("E2E_ENV") or ("ci" if os.environ.get("CI") else "local")
    return config.get(env, config["default"])
