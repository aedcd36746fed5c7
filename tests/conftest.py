"""
Shared pytest fixtures for the provisioning engine test suite.

Unit tests run the real engine against ``FakeNotesApp`` through
``FakeDriver``; nothing here needs a browser or a backend. Every test
gets a fresh application, clock and label sequence.

Key Concepts Demonstrated:
- Fixture dependencies (clock -> app -> driver -> engine)
- Settings derived from the "testing" config class
- Deterministic label generation via a seeded NameSequence
"""

from dataclasses import replace

import pytest
from faker import Faker

from config import get_config
from provisioning.engine import ProvisioningEngine
from provisioning.models import SeedIdentity
from provisioning.names import NameSequence
from provisioning.selectors import TreeSelectors
from provisioning.settings import ProvisioningSettings
from tests.mocks.notes_app import FakeClock, FakeDriver, FakeNotesApp


# Initialize Faker for generating test data
fake = Faker()


# -----------------------------------------------------------------------------
# Fake Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notes_app(clock) -> FakeNotesApp:
    """
    Fresh in-memory application with the tree already rendered.

    Args:
        clock: Fake clock fixture.

    Returns:
        FakeNotesApp instance.
    """
    app = FakeNotesApp(clock)
    app.loaded = True
    return app


@pytest.fixture
def selectors() -> TreeSelectors:
    return TreeSelectors()


@pytest.fixture
def driver(notes_app, selectors) -> FakeDriver:
    return FakeDriver(notes_app, selectors)


# -----------------------------------------------------------------------------
# Engine Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def settings() -> ProvisioningSettings:
    """
    Engine settings built from the testing config.

    Screenshots are disabled so unit tests never touch the filesystem;
    tests that care about screenshots override ``screenshot_dir``.
    """
    return ProvisioningSettings.from_config(get_config("testing"), screenshot_dir=None)


@pytest.fixture
def names() -> NameSequence:
    """Label sequence seeded at 0, so labels are "<prefix> 1", "<prefix> 2", ..."""
    return NameSequence(seed=0)


@pytest.fixture
def owner() -> SeedIdentity:
    return SeedIdentity(email=fake.unique.email(), password=fake.password(length=12))


@pytest.fixture
def engine_factory(driver, settings, names, clock):
    """
    Factory fixture for engines bound to the fake application.

    Example:
        def test_something(engine_factory):
            engine = engine_factory(synthetic_parents=False)
    """

    def _create_engine(owner=None, cleanup=None, label_sequence=None, **overrides) -> ProvisioningEngine:
        engine_settings = replace(settings, **overrides)
        return ProvisioningEngine(
            driver,
            engine_settings,
            selectors=driver.selectors,
            names=label_sequence or names,
            owner=owner,
            cleanup=cleanup,
            clock=clock,
        )

    return _create_engine


@pytest.fixture
def engine(engine_factory) -> ProvisioningEngine:
    return engine_factory()
