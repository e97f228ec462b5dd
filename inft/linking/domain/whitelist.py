from enum import IntFlag
from typing import Dict, List, Tuple

from inft.core.transaction.transactional import Transactional


class WhitelistMask(IntFlag):
    NONE = 0
    ALLOW_LINKING = 0x1
    ALLOW_UNLINKING = 0x2


class TargetContractWhitelist(Transactional):
    """
    Per target contract capability set. The two directions are independent:
    a contract may accept new links while refusing unlinks, or the reverse.
    """

    def __init__(self):
        self._masks: Dict[str, WhitelistMask] = {}

    def mask_of(self, contract: str) -> WhitelistMask:
        return self._masks.get(contract, WhitelistMask.NONE)

    def set_mask(self, contract: str, mask: WhitelistMask) -> Tuple[WhitelistMask, WhitelistMask]:
        old_mask = self.mask_of(contract)
        if mask:
            self._masks[contract] = WhitelistMask(mask)
        else:
            self._masks.pop(contract, None)
        return old_mask, WhitelistMask(mask)

    def allows_linking(self, contract: str) -> bool:
        return WhitelistMask.ALLOW_LINKING in self.mask_of(contract)

    def allows_unlinking(self, contract: str) -> bool:
        return WhitelistMask.ALLOW_UNLINKING in self.mask_of(contract)

    def contracts(self) -> List[str]:
        return list(self._masks.keys())

    def masks(self) -> Dict[str, WhitelistMask]:
        return dict(self._masks)

    def savepoint(self):
        return dict(self._masks)

    def rollback(self, savepoint) -> None:
        self._masks = dict(savepoint)

    def release(self, savepoint) -> None:
        pass
