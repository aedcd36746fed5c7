"""
Unit tests for polling, readiness and the existence oracle.
"""

import pytest

from provisioning.errors import ProvisioningTimeout
from provisioning.models import ResourceKind
from provisioning.oracle import ItemExistenceOracle
from provisioning.waiting import ReadinessPoller, WaitTimeout, wait_until


pytestmark = pytest.mark.unit


# =============================================================================
# wait_until
# =============================================================================

class TestWaitUntil:

    def test_returns_first_truthy_value(self, clock):
        # Arrange
        values = iter([None, 0, "ready"])

        # Act
        result = wait_until(lambda: next(values), 5, interval=0.1, clock=clock, sleep=clock.advance)

        # Assert
        assert result == "ready"
        assert clock.now == pytest.approx(0.2)

    def test_zero_timeout_still_checks_once(self, clock):
        calls = []

        result = wait_until(lambda: calls.append(1) or True, 0, clock=clock, sleep=clock.advance)

        assert result is True
        assert calls == [1]

    def test_raises_after_budget(self, clock):
        with pytest.raises(WaitTimeout) as exc_info:
            wait_until(lambda: False, 1, interval=0.25, clock=clock, sleep=clock.advance, description="x")

        assert exc_info.value.polls == 5
        assert "waiting for x" in str(exc_info.value)
        assert clock.now == pytest.approx(1.0)

    def test_never_sleeps_past_deadline(self, clock):
        sleeps = []

        def record_sleep(seconds):
            sleeps.append(seconds)
            clock.advance(seconds)

        with pytest.raises(WaitTimeout):
            wait_until(lambda: False, 0.3, interval=0.2, clock=clock, sleep=record_sleep)

        assert sleeps == pytest.approx([0.2, 0.1])


# =============================================================================
# ReadinessPoller
# =============================================================================

@pytest.fixture
def poller(driver, selectors, clock):
    return ReadinessPoller(driver, selectors, poll_interval_ms=50, clock=clock, sleep=driver.pause)


class TestReadinessPoller:

    def test_ready_once_rendered(self, notes_app, poller):
        notes_app.add_item(ResourceKind.FOLDER, "Projects 1")

        assert poller.wait_until_ready("Projects 1", 1000) is True

    def test_waits_for_delayed_render(self, notes_app, poller, clock):
        # Arrange
        notes_app.add_item(ResourceKind.FOLDER, "Slow 1", visible_at=2.0)

        # Act
        ready = poller.wait_until_ready("Slow 1", 5000)

        # Assert
        assert ready is True
        assert 2.0 <= clock.now < 2.1

    def test_hidden_item_is_not_ready(self, notes_app, poller):
        notes_app.add_item(ResourceKind.FOLDER, "Hidden 1", hidden=True)

        assert poller.is_ready("Hidden 1") is False

    def test_zero_size_item_is_not_ready(self, notes_app, poller):
        notes_app.add_item(ResourceKind.FOLDER, "Collapsed 1", zero_size=True)

        assert poller.is_ready("Collapsed 1") is False

    def test_same_label_in_another_folder_does_not_count(self, notes_app, poller, clock):
        # Arrange - sibling names are only unique per folder
        notes_app.add_item(ResourceKind.FOLDER, "Alpha 1")
        notes_app.add_item(ResourceKind.FOLDER, "Beta 1")
        notes_app.add_item(ResourceKind.NOTE, "Plan 2", parent_label="Alpha 1")
        notes_app.add_item(ResourceKind.NOTE, "Plan 2", parent_label="Beta 1", visible_at=5.0)

        # Act
        ready_before = poller.is_ready("Plan 2", parent="Beta 1")
        ready = poller.wait_until_ready("Plan 2", 10000, parent="Beta 1")

        # Assert
        assert ready_before is False
        assert ready is True
        assert clock.now >= 5.0

    def test_timeout_raises_with_diagnostics(self, notes_app, driver, selectors, clock, tmp_path):
        # Arrange
        notes_app.add_item(ResourceKind.FOLDER, "Other 1")
        poller = ReadinessPoller(
            driver,
            selectors,
            poll_interval_ms=100,
            screenshot_dir=str(tmp_path),
            clock=clock,
            sleep=driver.pause,
        )

        # Act
        with pytest.raises(ProvisioningTimeout) as exc_info:
            poller.wait_until_ready("Missing 1", 500)

        # Assert
        error = exc_info.value
        assert error.timeout_ms == 500
        assert error.diagnostics.labels == ["Other 1"]
        assert error.diagnostics.screenshot_path.startswith(str(tmp_path))
        assert driver.screenshots == [error.diagnostics.screenshot_path]
        assert "screenshot:" in str(error)


# =============================================================================
# ItemExistenceOracle
# =============================================================================

class TestItemExistenceOracle:

    def test_exact_match_only(self, notes_app, driver, selectors):
        # Arrange
        notes_app.add_item(ResourceKind.FOLDER, "Plan 1")
        notes_app.add_item(ResourceKind.FOLDER, "Plan 10")
        oracle = ItemExistenceOracle(driver, selectors)

        # Act / Assert
        assert oracle.exists("Plan 1")
        assert oracle.count("Plan 1") == 1
        assert not oracle.exists("Plan")

    def test_counts_duplicates_across_folders(self, notes_app, driver, selectors):
        notes_app.add_item(ResourceKind.FOLDER, "A")
        notes_app.add_item(ResourceKind.FOLDER, "B")
        notes_app.add_item(ResourceKind.TASK, "Todo", parent_label="A")
        notes_app.add_item(ResourceKind.TASK, "Todo", parent_label="B")

        assert ItemExistenceOracle(driver, selectors).count("Todo") == 2

    def test_scoped_to_parent_folder(self, notes_app, driver, selectors):
        # Arrange
        notes_app.add_item(ResourceKind.FOLDER, "A")
        notes_app.add_item(ResourceKind.FOLDER, "B")
        notes_app.add_item(ResourceKind.FOLDER, "Inner", parent_label="B")
        notes_app.add_item(ResourceKind.TASK, "Todo", parent_label="A")
        oracle = ItemExistenceOracle(driver, selectors)

        # Act / Assert
        assert oracle.exists("Todo", "A")
        assert not oracle.exists("Todo", "B")
        assert oracle.labels("B") == ["Inner"]
        assert oracle.labels("Missing") == []

    def test_labels_are_stripped(self, notes_app, driver, selectors):
        notes_app.add_item(ResourceKind.FOLDER, "Inbox")

        assert ItemExistenceOracle(driver, selectors).labels() == ["Inbox"]

    def test_unrendered_items_do_not_exist_yet(self, notes_app, driver, selectors):
        notes_app.add_item(ResourceKind.FOLDER, "Later", visible_at=3.0)

        assert not ItemExistenceOracle(driver, selectors).exists("Later")
