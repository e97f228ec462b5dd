from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class TimeSource(ABC):
    """
    Source of event timestamps.
    Always UTC-aware so that event logs from different processes stay comparable.
    """
    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemTimeSource(TimeSource):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FrozenTimeSource(TimeSource):
    """
    Deterministic clock for tests and replays.
    `step` advances the clock after every read, which keeps event order visible in timestamps.
    """
    def __init__(self, start_time: datetime, step: timedelta = timedelta(0)):
        if start_time.tzinfo is None:
            raise ValueError("FrozenTimeSource requires timezone-aware datetime")
        self._current_time = start_time
        self._step = step

    def now(self) -> datetime:
        current = self._current_time
        self._current_time += self._step
        return current

    def advance(self, delta: timedelta) -> None:
        self._current_time += delta
