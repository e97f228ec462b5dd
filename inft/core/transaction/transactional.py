from abc import ABC, abstractmethod
from typing import Any


class Transactional(ABC):
    """
    Participant of an atomic unit.
    The coordinator takes a savepoint at the outermost entry and either
    rolls every participant back to it or releases it on success.
    """

    @abstractmethod
    def savepoint(self) -> Any:
        pass

    @abstractmethod
    def rollback(self, savepoint: Any) -> None:
        pass

    @abstractmethod
    def release(self, savepoint: Any) -> None:
        pass
