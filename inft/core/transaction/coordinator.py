import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Tuple

from inft.core.transaction.transactional import Transactional

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """
    All-or-nothing execution of protocol operations.

    Participants (stores, ledgers, allocators, the event buffer) are enlisted once.
    The outermost `atomic()` snapshots all of them; nested calls join the outer unit.
    Any exception escaping the outermost unit restores every participant, in reverse
    enlistment order, before it propagates.
    """

    def __init__(self):
        self._participants: List[Transactional] = []
        self._depth = 0

    def enlist(self, participant: Transactional) -> None:
        if self._depth > 0:
            raise RuntimeError("cannot enlist participants inside an atomic unit")
        if any(p is participant for p in self._participants):
            return
        self._participants.append(participant)

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if self._depth > 0:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        savepoints: List[Tuple[Transactional, Any]] = [
            (p, p.savepoint()) for p in self._participants
        ]
        self._depth = 1
        try:
            yield
        except BaseException as e:
            self._depth = 0
            logger.debug("Rolling back atomic unit: %r", e)
            for participant, savepoint in reversed(savepoints):
                participant.rollback(savepoint)
            raise
        self._depth = 0
        for participant, savepoint in savepoints:
            participant.release(savepoint)
