import pytest
from datetime import datetime, timedelta, timezone

from inft.core.domain.exceptions import ReentrancyError, ValidationError
from inft.core.events.event_emitter import EventEmitter
from inft.core.events.event_ledger import InMemoryEventLedger
from inft.core.guard.reentrancy_guard import ReentrancyGuard
from inft.core.observability.protocol_observer import ProtocolObserver
from inft.core.time.time_source import FrozenTimeSource
from inft.core.transaction.coordinator import TransactionCoordinator
from inft.core.transaction.transactional import Transactional


# --- Mocks ---

class Counter(Transactional):
    def __init__(self):
        self.value = 0
        self.released = 0

    def savepoint(self):
        return self.value

    def rollback(self, savepoint) -> None:
        self.value = savepoint

    def release(self, savepoint) -> None:
        self.released += 1


class RecordingObserver(ProtocolObserver):
    def __init__(self):
        self.events = []

    def on_event(self, event) -> None:
        self.events.append(event)


# --- Fixtures ---

@pytest.fixture
def coordinator():
    return TransactionCoordinator()


@pytest.fixture
def emitter():
    return EventEmitter(
        ledger=InMemoryEventLedger(),
        observer=RecordingObserver(),
        time_source=FrozenTimeSource(datetime(2024, 1, 1, tzinfo=timezone.utc), step=timedelta(seconds=1))
    )


# --- Tests ---

def test_atomic_commits_and_releases(coordinator):
    counter = Counter()
    coordinator.enlist(counter)

    with coordinator.atomic():
        counter.value = 5

    assert counter.value == 5
    assert counter.released == 1
    assert not coordinator.in_transaction


def test_atomic_rolls_back_every_participant(coordinator):
    first, second = Counter(), Counter()
    coordinator.enlist(first)
    coordinator.enlist(second)

    with pytest.raises(ValidationError):
        with coordinator.atomic():
            first.value = 1
            second.value = 2
            raise ValidationError("boom")

    assert first.value == 0
    assert second.value == 0
    assert first.released == 0


def test_nested_atomic_joins_outer_unit(coordinator):
    counter = Counter()
    coordinator.enlist(counter)

    with pytest.raises(ValidationError):
        with coordinator.atomic():
            with coordinator.atomic():
                counter.value = 7
            assert coordinator.in_transaction
            raise ValidationError("outer failure")

    assert counter.value == 0


def test_interrupt_rolls_back_and_closes_unit(coordinator, emitter):
    counter = Counter()
    coordinator.enlist(counter)
    coordinator.enlist(emitter)

    with pytest.raises(KeyboardInterrupt):
        with coordinator.atomic():
            counter.value = 3
            emitter.emit("A", by="alice")
            raise KeyboardInterrupt

    assert counter.value == 0
    assert not coordinator.in_transaction
    assert emitter.pending() == []

    emitter.emit("B", by="alice")
    assert [e.event_type for e in emitter.ledger.get_history()] == ["B"]


def test_enlist_is_idempotent_and_closed_inside_unit(coordinator):
    counter = Counter()
    coordinator.enlist(counter)
    coordinator.enlist(counter)

    with coordinator.atomic():
        counter.value = 1
    assert counter.released == 1

    with coordinator.atomic():
        with pytest.raises(RuntimeError):
            coordinator.enlist(Counter())


def test_emitter_publishes_immediately_outside_unit(emitter):
    event = emitter.emit("PING", by="alice", value=1)

    assert emitter.ledger.get_history() == [event]
    assert emitter.observer.events == [event]
    assert event.payload == {"value": 1}


def test_emitter_buffers_until_commit(coordinator, emitter):
    coordinator.enlist(emitter)

    with coordinator.atomic():
        emitter.emit("A", by="alice")
        emitter.emit("B", by="alice")
        assert len(emitter.pending()) == 2
        assert emitter.ledger.get_history() == []

    history = emitter.ledger.get_history()
    assert [e.event_type for e in history] == ["A", "B"]
    assert history[0].timestamp < history[1].timestamp
    assert emitter.pending() == []


def test_emitter_drops_events_of_rolled_back_unit(coordinator, emitter):
    coordinator.enlist(emitter)

    with pytest.raises(ValidationError):
        with coordinator.atomic():
            emitter.emit("A", by="alice")
            raise ValidationError("boom")

    assert emitter.ledger.get_history() == []
    assert emitter.observer.events == []
    assert emitter.pending() == []


def test_reentrancy_guard_rejects_second_entry():
    guard = ReentrancyGuard("Sample")

    with guard:
        assert guard.entered
        with pytest.raises(ReentrancyError):
            with guard:
                pass

    assert not guard.entered
    with guard:
        pass
