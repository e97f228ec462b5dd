from abc import abstractmethod
from threading import Lock
from typing import Dict, List, Optional

from inft.binding.domain.binding import AssetRef, Binding
from inft.core.domain.exceptions import NotBound
from inft.core.transaction.transactional import Transactional


class BindingStore(Transactional):
    """
    Storage of live bindings, both reverse indices and the aggregate counters.
    Each mutation updates the record, the indices and the counters together.
    Uniqueness is validated by the registry before calling in.
    """

    @abstractmethod
    def get(self, binding_id: int) -> Optional[Binding]:
        pass

    @abstractmethod
    def find_by_personality(self, personality: AssetRef) -> Optional[int]:
        pass

    @abstractmethod
    def find_by_target(self, target: AssetRef) -> Optional[int]:
        pass

    @abstractmethod
    def insert(self, binding: Binding) -> None:
        pass

    @abstractmethod
    def remove(self, binding_id: int) -> Binding:
        pass

    @abstractmethod
    def update_collateral(self, binding_id: int, value: int) -> Binding:
        pass

    @abstractmethod
    def total_collateral(self) -> int:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def list_all(self) -> List[Binding]:
        pass


class InMemoryBindingStore(BindingStore):
    def __init__(self):
        self._records: Dict[int, Binding] = {}
        self._personality_index: Dict[AssetRef, int] = {}
        self._target_index: Dict[AssetRef, int] = {}
        self._total_collateral = 0
        self._lock = Lock()

    def get(self, binding_id: int) -> Optional[Binding]:
        with self._lock:
            return self._records.get(binding_id)

    def find_by_personality(self, personality: AssetRef) -> Optional[int]:
        with self._lock:
            return self._personality_index.get(personality)

    def find_by_target(self, target: AssetRef) -> Optional[int]:
        with self._lock:
            return self._target_index.get(target)

    def insert(self, binding: Binding) -> None:
        with self._lock:
            self._records[binding.id] = binding
            self._personality_index[binding.personality] = binding.id
            self._target_index[binding.target] = binding.id
            self._total_collateral += binding.collateral_value

    def remove(self, binding_id: int) -> Binding:
        with self._lock:
            binding = self._records.pop(binding_id, None)
            if binding is None:
                raise NotBound("not bound")
            del self._personality_index[binding.personality]
            del self._target_index[binding.target]
            self._total_collateral -= binding.collateral_value
            return binding

    def update_collateral(self, binding_id: int, value: int) -> Binding:
        with self._lock:
            binding = self._records.get(binding_id)
            if binding is None:
                raise NotBound("not bound")
            updated = binding.with_collateral(value)
            self._records[binding_id] = updated
            self._total_collateral += value - binding.collateral_value
            return updated

    def total_collateral(self) -> int:
        with self._lock:
            return self._total_collateral

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def list_all(self) -> List[Binding]:
        with self._lock:
            return list(self._records.values())

    # --- Transactional ---

    def savepoint(self):
        with self._lock:
            return (
                dict(self._records),
                dict(self._personality_index),
                dict(self._target_index),
                self._total_collateral,
            )

    def rollback(self, savepoint) -> None:
        with self._lock:
            records, personality_index, target_index, total = savepoint
            self._records = dict(records)
            self._personality_index = dict(personality_index)
            self._target_index = dict(target_index)
            self._total_collateral = total

    def release(self, savepoint) -> None:
        pass
