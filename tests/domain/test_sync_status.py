"""
Tests for the SyncStatusTracker state machine.
"""

import pytest

from devspace_kernel.domain.sync_status import SyncState, SyncStatusTracker


@pytest.fixture
def tracker(deterministic_clock):
    return SyncStatusTracker(deterministic_clock)


class TestTransitions:
    def test_starts_idle(self, tracker):
        assert tracker.state is SyncState.IDLE

    def test_success_path(self, tracker, deterministic_clock):
        tracker.begin("persist")
        assert tracker.state is SyncState.SYNCING
        tracker.succeed("persist")
        assert tracker.state is SyncState.SUCCESS
        assert tracker.last_success_at == deterministic_clock.now()

    def test_acknowledge_returns_success_to_idle(self, tracker):
        tracker.begin("backup")
        tracker.succeed("backup")
        tracker.acknowledge()
        assert tracker.state is SyncState.IDLE

    def test_error_survives_acknowledge(self, tracker):
        tracker.begin("backup")
        tracker.fail("backup", "disk full")
        tracker.acknowledge()
        assert tracker.state is SyncState.ERROR
        assert tracker.last_error == "disk full"

    def test_begin_clears_error(self, tracker):
        tracker.begin("backup")
        tracker.fail("backup", "disk full")
        tracker.begin("backup")
        tracker.succeed("backup")
        assert tracker.state is SyncState.SUCCESS
        assert tracker.last_error is None

    def test_finish_requires_syncing(self, tracker):
        with pytest.raises(RuntimeError):
            tracker.succeed("persist")
        with pytest.raises(RuntimeError):
            tracker.fail("persist", "boom")

    def test_nested_begin_is_noop(self, tracker):
        events = []
        tracker.subscribe(events.append)
        tracker.begin("restore")
        tracker.begin("persist")
        assert len(events) == 1


class TestListeners:
    def test_listener_receives_every_transition(self, tracker):
        events = []
        tracker.subscribe(events.append)
        tracker.begin("persist")
        tracker.fail("persist", "offline")

        assert [(e.previous, e.state) for e in events] == [
            (SyncState.IDLE, SyncState.SYNCING),
            (SyncState.SYNCING, SyncState.ERROR),
        ]
        assert events[-1].error == "offline"
        assert events[-1].operation == "persist"

    def test_unsubscribe(self, tracker):
        events = []
        unsubscribe = tracker.subscribe(events.append)
        unsubscribe()
        unsubscribe()
        tracker.begin("persist")
        assert events == []
