from inft.binding.domain.binding import MAX_BINDING_ID
from inft.core.domain.exceptions import ValidationError
from inft.core.transaction.transactional import Transactional

NEXT_ID_SEED = 0x2_0000_0000


class NextIdAllocator(Transactional):
    """
    Strictly increasing id counter. Ids below the seed stay reserved for
    direct privileged mints. The counter may be fast-forwarded, never rewound.
    """

    def __init__(self, seed: int = NEXT_ID_SEED):
        if not 0 <= seed <= MAX_BINDING_ID:
            raise ValidationError(f"next id seed out of range: {seed}")
        self._next_id = seed

    @property
    def next_id(self) -> int:
        return self._next_id

    def allocate(self) -> int:
        allocated = self._next_id
        if allocated > MAX_BINDING_ID:
            raise ValidationError("binding id space exhausted")
        self._next_id += 1
        return allocated

    def fast_forward(self, value: int) -> int:
        if value <= self._next_id:
            raise ValidationError("value too low")
        if value > MAX_BINDING_ID:
            raise ValidationError(f"next id out of range: {value}")
        previous, self._next_id = self._next_id, value
        return previous

    def savepoint(self):
        return self._next_id

    def rollback(self, savepoint) -> None:
        self._next_id = savepoint

    def release(self, savepoint) -> None:
        pass
