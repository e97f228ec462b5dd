import json
import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from inft.core.events.protocol_event import ProtocolEvent


class EventLedger(ABC):
    """
    Append-only log of committed protocol events.
    """
    @abstractmethod
    def record(self, event: ProtocolEvent) -> None:
        pass

    @abstractmethod
    def get_history(self, event_type: Optional[str] = None) -> List[ProtocolEvent]:
        pass


class InMemoryEventLedger(EventLedger):
    def __init__(self):
        self._events: List[ProtocolEvent] = []

    def record(self, event: ProtocolEvent) -> None:
        self._events.append(event)

    def get_history(self, event_type: Optional[str] = None) -> List[ProtocolEvent]:
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e.event_type == event_type]


class FileEventLedger(EventLedger):
    """
    File-backed append-only log (one JSON object per line).
    Payload integers are written as-is; JSON has no width limit for them.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(file_path):
            with open(file_path, 'w') as f:
                f.write("")

    def record(self, event: ProtocolEvent) -> None:
        data = {
            "id": str(event.id),
            "timestamp": event.timestamp.isoformat(),
            "event_type": event.event_type,
            "by": event.by,
            "payload": event.payload,
        }
        with open(self.file_path, 'a') as f:
            f.write(json.dumps(data) + "\n")

    def get_history(self, event_type: Optional[str] = None) -> List[ProtocolEvent]:
        events = []
        if not os.path.exists(self.file_path):
            return []

        with open(self.file_path, 'r') as f:
            for line in f:
                if not line.strip():
                    continue
                data = json.loads(line)
                if event_type is not None and data["event_type"] != event_type:
                    continue
                events.append(ProtocolEvent(
                    id=UUID(data["id"]),
                    timestamp=datetime.fromisoformat(data["timestamp"]),
                    event_type=data["event_type"],
                    by=data["by"],
                    payload=data["payload"],
                ))
        return events
