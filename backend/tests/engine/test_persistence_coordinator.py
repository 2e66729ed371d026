"""Unit tests for PersistenceCoordinator debouncing and single-flight saves.

Timing uses a short debounce window (DEBOUNCE) and waits of several windows,
so the assertions do not depend on scheduler precision.
"""

import asyncio

import pytest

from canvas.engine.persistence import PersistenceCoordinator

from tests.engine.doubles import RecordingNotifier, RecordingPersistence

DEBOUNCE = 0.05


class Counter:
    """Snapshot source whose value changes between mutations."""

    def __init__(self):
        self.value = 0

    def snapshot(self):
        return {"nodes": [{"id": str(self.value)}], "edges": []}


def _coordinator(persistence, source=None, notifier=None, debounce=DEBOUNCE):
    source = source or Counter()
    return PersistenceCoordinator(
        "p-1", source.snapshot, persistence, notifier=notifier, debounce_seconds=debounce,
    )


class TestDebounce:
    @pytest.mark.asyncio
    async def test_burst_produces_one_save(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence)

        for _ in range(10):
            coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 4)

        assert len(persistence.saves) == 1

    @pytest.mark.asyncio
    async def test_each_mutation_restarts_the_window(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence)

        for _ in range(4):
            coordinator.notify()
            await asyncio.sleep(DEBOUNCE / 3)
        assert persistence.saves == []

        await asyncio.sleep(DEBOUNCE * 4)
        assert len(persistence.saves) == 1

    @pytest.mark.asyncio
    async def test_spaced_mutations_save_separately(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence)

        coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 4)
        coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 4)

        assert len(persistence.saves) == 2

    @pytest.mark.asyncio
    async def test_snapshot_read_at_fire_time(self):
        persistence = RecordingPersistence()
        source = Counter()
        coordinator = _coordinator(persistence, source)

        coordinator.notify()
        source.value = 7
        await asyncio.sleep(DEBOUNCE * 4)

        assert persistence.saves == [{"nodes": [{"id": "7"}], "edges": []}]


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_fire_during_save_rearms(self):
        persistence = RecordingPersistence(delay=DEBOUNCE * 3)
        source = Counter()
        coordinator = _coordinator(persistence, source)

        coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 1.5)
        assert coordinator.state.is_saving

        source.value = 2
        coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 12)

        assert persistence.max_in_flight == 1
        assert len(persistence.saves) == 2
        assert persistence.saves[-1]["nodes"] == [{"id": "2"}]


class TestFailures:
    @pytest.mark.asyncio
    async def test_failure_notifies_and_next_mutation_retries(self):
        persistence = RecordingPersistence(fail_times=1)
        notifier = RecordingNotifier()
        coordinator = _coordinator(persistence, notifier=notifier)

        coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 4)

        assert persistence.saves == []
        assert coordinator.state.last_error == "storage unavailable"
        assert coordinator.state.last_saved_at is None
        assert notifier.errors == [("Failed to save project", "storage unavailable")]

        coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 4)

        assert len(persistence.saves) == 1
        assert coordinator.state.last_error is None
        assert coordinator.state.last_saved_at is not None


class TestFlushAndClose:
    @pytest.mark.asyncio
    async def test_flush_saves_immediately(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence, debounce=10)

        coordinator.notify()
        await coordinator.flush()

        assert len(persistence.saves) == 1
        assert not coordinator.is_dirty

    @pytest.mark.asyncio
    async def test_flush_without_changes_is_a_no_op(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence)

        await coordinator.flush()

        assert persistence.saves == []

    @pytest.mark.asyncio
    async def test_close_stops_accepting_mutations(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence)

        coordinator.notify()
        await coordinator.close()
        coordinator.notify()
        await asyncio.sleep(DEBOUNCE * 4)

        assert len(persistence.saves) == 1

    def test_mutation_without_loop_is_pending(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence)

        coordinator.notify()
        assert coordinator.is_dirty

        asyncio.run(coordinator.flush())

        assert len(persistence.saves) == 1

    @pytest.mark.asyncio
    async def test_save_state_dict(self):
        persistence = RecordingPersistence()
        coordinator = _coordinator(persistence)

        coordinator.notify()
        await coordinator.flush()

        state = coordinator.state.to_dict()
        assert state["isSaving"] is False
        assert state["lastError"] is None
        assert state["lastSavedAt"] is not None
