from threading import RLock
from typing import Dict, Set, Tuple

from inft.core.domain.exceptions import TokenNotFound, TransferNotAuthorized, ValidationError
from inft.core.transaction.transactional import Transactional
from inft.ledgers.interfaces.non_fungible_ledger import NON_FUNGIBLE_INTERFACE, NonFungibleLedger


class InMemoryNonFungibleLedger(NonFungibleLedger, Transactional):
    """
    Reference non-fungible ledger with per-token and operator approvals.
    Used for both the personality and the target asset classes.
    """

    def __init__(self, address: str, name: str = ""):
        if not address:
            raise ValidationError("token address is not set")
        self.address = address
        self.name = name
        self._owners: Dict[int, str] = {}
        self._token_approvals: Dict[int, str] = {}
        self._operator_approvals: Set[Tuple[str, str]] = set()
        self._lock = RLock()

    def supports_interface(self, interface: str) -> bool:
        return interface == NON_FUNGIBLE_INTERFACE

    # --- Reads ---

    def owner_of(self, token_id: int) -> str:
        with self._lock:
            owner = self._owners.get(token_id)
        if owner is None:
            raise TokenNotFound(f"{self.address}: invalid token ID {token_id}")
        return owner

    def exists(self, token_id: int) -> bool:
        with self._lock:
            return token_id in self._owners

    def balance_of(self, owner: str) -> int:
        with self._lock:
            return sum(1 for o in self._owners.values() if o == owner)

    def get_approved(self, token_id: int) -> str:
        self.owner_of(token_id)
        with self._lock:
            return self._token_approvals.get(token_id, "")

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        with self._lock:
            return (owner, operator) in self._operator_approvals

    # --- Mutations ---

    def mint(self, to: str, token_id: int) -> None:
        if not to:
            raise ValidationError("mint to the zero address")
        if not isinstance(token_id, int) or token_id < 0:
            raise ValidationError(f"invalid token ID: {token_id!r}")
        with self._lock:
            if token_id in self._owners:
                raise ValidationError(f"token {token_id} already minted")
            self._owners[token_id] = to

    def approve(self, owner: str, operator: str, token_id: int) -> None:
        with self._lock:
            current = self.owner_of(token_id)
            if owner != current and not self.is_approved_for_all(current, owner):
                raise TransferNotAuthorized("approve caller is not owner nor approved for all")
            self._token_approvals[token_id] = operator

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        if owner == operator:
            raise ValidationError("approve to caller")
        with self._lock:
            if approved:
                self._operator_approvals.add((owner, operator))
            else:
                self._operator_approvals.discard((owner, operator))

    def transfer_from(self, operator: str, sender: str, recipient: str, token_id: int) -> None:
        if not recipient:
            raise ValidationError("transfer to the zero address")
        with self._lock:
            owner = self.owner_of(token_id)
            if owner != sender:
                raise TransferNotAuthorized("transfer from incorrect owner")
            if not self._is_approved_or_owner(operator, owner, token_id):
                raise TransferNotAuthorized("caller is not token owner or approved")
            self._token_approvals.pop(token_id, None)
            self._owners[token_id] = recipient

    def _is_approved_or_owner(self, operator: str, owner: str, token_id: int) -> bool:
        return (
            operator == owner
            or self._token_approvals.get(token_id) == operator
            or (owner, operator) in self._operator_approvals
        )

    # --- Transactional ---

    def savepoint(self):
        with self._lock:
            return dict(self._owners), dict(self._token_approvals), set(self._operator_approvals)

    def rollback(self, savepoint) -> None:
        with self._lock:
            owners, token_approvals, operator_approvals = savepoint
            self._owners = dict(owners)
            self._token_approvals = dict(token_approvals)
            self._operator_approvals = set(operator_approvals)

    def release(self, savepoint) -> None:
        pass
