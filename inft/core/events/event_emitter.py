from typing import Any, List, Optional
from uuid import uuid4

from inft.core.events.event_ledger import EventLedger, InMemoryEventLedger
from inft.core.events.protocol_event import ProtocolEvent
from inft.core.observability.protocol_observer import NullProtocolObserver, ProtocolObserver
from inft.core.time.time_source import SystemTimeSource, TimeSource
from inft.core.transaction.transactional import Transactional


class EventEmitter(Transactional):
    """
    Buffers events raised inside an atomic unit and publishes them
    (ledger first, then observer) only when the unit commits.
    A rolled back unit publishes nothing.
    """

    def __init__(
            self,
            ledger: Optional[EventLedger] = None,
            observer: Optional[ProtocolObserver] = None,
            time_source: Optional[TimeSource] = None
    ):
        self.ledger = ledger or InMemoryEventLedger()
        self.observer = observer or NullProtocolObserver()
        self.time_source = time_source or SystemTimeSource()
        self._buffer: List[ProtocolEvent] = []
        self._active = False

    def emit(self, event_type: str, by: str, **payload: Any) -> ProtocolEvent:
        event = ProtocolEvent(
            id=uuid4(),
            timestamp=self.time_source.now(),
            event_type=event_type,
            by=by,
            payload=payload
        )
        if self._active:
            self._buffer.append(event)
        else:
            self._publish(event)
        return event

    def pending(self) -> List[ProtocolEvent]:
        return list(self._buffer)

    def savepoint(self) -> int:
        self._active = True
        return len(self._buffer)

    def rollback(self, savepoint: int) -> None:
        del self._buffer[savepoint:]
        self._active = False

    def release(self, savepoint: int) -> None:
        events, self._buffer = self._buffer, []
        self._active = False
        for event in events:
            self._publish(event)

    def _publish(self, event: ProtocolEvent) -> None:
        self.ledger.record(event)
        self.observer.on_event(event)
