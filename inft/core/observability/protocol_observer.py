from abc import ABC, abstractmethod

from inft.core.events.protocol_event import ProtocolEvent
from inft.core.logging.structured_logger import StructuredRuntimeLogger


class ProtocolObserver(ABC):
    """
    Hook interface for observing committed protocol events.
    Implementations must not have side effects on the core logic.
    """

    @abstractmethod
    def on_event(self, event: ProtocolEvent) -> None:
        """Called once per event, after the operation that produced it committed."""
        pass


class NullProtocolObserver(ProtocolObserver):
    """
    Default no-op observer.
    """
    def on_event(self, event: ProtocolEvent) -> None:
        pass


class LoggingProtocolObserver(ProtocolObserver):
    """
    Publishes every event as a JSON line through the structured logger.
    """
    def __init__(self, structured_logger: StructuredRuntimeLogger):
        self.structured_logger = structured_logger

    def on_event(self, event: ProtocolEvent) -> None:
        self.structured_logger.emit(
            event.event_type,
            event_id=event.id,
            by=event.by,
            occurred_at=event.timestamp.isoformat(),
            **event.payload,
        )
