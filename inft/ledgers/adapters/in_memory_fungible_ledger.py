from threading import RLock
from typing import Dict, Tuple

from inft.core.domain.exceptions import InsufficientAllowance, InsufficientBalance, ValidationError
from inft.core.transaction.transactional import Transactional
from inft.ledgers.interfaces.fungible_ledger import FUNGIBLE_INTERFACE, FungibleLedger


class InMemoryFungibleLedger(FungibleLedger, Transactional):
    """
    Reference collateral token: balances and allowances kept in process memory.
    """

    def __init__(self, address: str, symbol: str = "ALI"):
        if not address:
            raise ValidationError("token address is not set")
        self.address = address
        self.symbol = symbol
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply = 0
        self._lock = RLock()

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def supports_interface(self, interface: str) -> bool:
        return interface == FUNGIBLE_INTERFACE

    def balance_of(self, owner: str) -> int:
        with self._lock:
            return self._balances.get(owner, 0)

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        _require_amount(amount)
        with self._lock:
            self._allowances[(owner, spender)] = amount

    def mint(self, to: str, amount: int) -> None:
        _require_amount(amount)
        if not to:
            raise ValidationError("mint to the zero address")
        with self._lock:
            self._balances[to] = self._balances.get(to, 0) + amount
            self._total_supply += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        _require_amount(amount)
        with self._lock:
            self._move(sender, recipient, amount)

    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int) -> None:
        _require_amount(amount)
        with self._lock:
            if spender != sender:
                allowed = self._allowances.get((sender, spender), 0)
                if allowed < amount:
                    raise InsufficientAllowance("transfer amount exceeds allowance")
            self._move(sender, recipient, amount)
            if spender != sender:
                self._allowances[(sender, spender)] = allowed - amount

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if not recipient:
            raise ValidationError("transfer to the zero address")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance("transfer amount exceeds balance")
        self._balances[sender] = balance - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    # --- Transactional ---

    def savepoint(self):
        with self._lock:
            return dict(self._balances), dict(self._allowances), self._total_supply

    def rollback(self, savepoint) -> None:
        with self._lock:
            balances, allowances, total_supply = savepoint
            self._balances = dict(balances)
            self._allowances = dict(allowances)
            self._total_supply = total_supply

    def release(self, savepoint) -> None:
        pass


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or amount < 0:
        raise ValidationError(f"invalid amount: {amount!r}")
