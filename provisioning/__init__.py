"""
Hierarchical test-data provisioning for the Notes & Tasks UI.

Creates folders, notes and tasks through the application's own UI as
test preconditions and removes them once the run is over.
"""

from provisioning.cleanup import CleanupCoordinator
from provisioning.driver import NetworkResponse, PlaywrightDriver, UIDriver
from provisioning.engine import ProvisioningEngine
from provisioning.errors import (
    ConflictRetriesExhausted,
    ContainmentError,
    NetworkFailure,
    ProvisioningAssertionError,
    ProvisioningError,
    ProvisioningTimeout,
    ValidationConflict,
)
from provisioning.models import (
    CleanupReport,
    ProvisionedResourceRecord,
    ResourceKind,
    ResourceSpec,
    SeedIdentity,
)
from provisioning.names import NameSequence
from provisioning.selectors import TreeSelectors
from provisioning.settings import ProvisioningSettings

__all__ = [
    "CleanupCoordinator",
    "CleanupReport",
    "ConflictRetriesExhausted",
    "ContainmentError",
    "NameSequence",
    "NetworkFailure",
    "NetworkResponse",
    "PlaywrightDriver",
    "ProvisionedResourceRecord",
    "ProvisioningAssertionError",
    "ProvisioningEngine",
    "ProvisioningError",
    "ProvisioningSettings",
    "ProvisioningTimeout",
    "ResourceKind",
    "ResourceSpec",
    "SeedIdentity",
    "TreeSelectors",
    "UIDriver",
    "ValidationConflict",
]
