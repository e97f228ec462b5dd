from threading import Lock

from inft.core.domain.exceptions import ReentrancyError


class ReentrancyGuard:
    """
    Non-reentrant lock for externally reachable mutating entry points.
    A second entry while the first is still running fails immediately
    instead of waiting, so a collaborator calling back is rejected.
    """

    def __init__(self, name: str):
        self._name = name
        self._lock = Lock()

    @property
    def entered(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> "ReentrancyGuard":
        if not self._lock.acquire(blocking=False):
            raise ReentrancyError(f"{self._name}: reentrant call")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._lock.release()
