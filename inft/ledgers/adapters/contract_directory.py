from typing import Any, Dict, Optional

from inft.core.domain.exceptions import NotFungible, NotNonFungible, ValidationError
from inft.core.transaction.coordinator import TransactionCoordinator
from inft.core.transaction.transactional import Transactional
from inft.ledgers.interfaces.fungible_ledger import FUNGIBLE_INTERFACE, FungibleLedger
from inft.ledgers.interfaces.non_fungible_ledger import NON_FUNGIBLE_INTERFACE, NonFungibleLedger


class ContractDirectory:
    """
    Runtime-only registry resolving contract addresses to ledger collaborators.
    Also answers the capability probe: an address that is unknown, or whose
    contract does not claim the interface, fails the probe.
    """

    def __init__(self, coordinator: Optional[TransactionCoordinator] = None):
        self.coordinator = coordinator
        self._contracts: Dict[str, Any] = {}

    def register(self, contract: Any) -> Any:
        address = getattr(contract, "address", None)
        if not address:
            raise ValidationError("contract address is not set")
        self._contracts[address] = contract
        if self.coordinator is not None and isinstance(contract, Transactional):
            self.coordinator.enlist(contract)
        return contract

    def supports(self, address: str, interface: str) -> bool:
        contract = self._contracts.get(address)
        if contract is None:
            return False
        probe = getattr(contract, "supports_interface", None)
        if probe is None:
            return False
        return bool(probe(interface))

    def fungible(self, address: str) -> FungibleLedger:
        if not self.supports(address, FUNGIBLE_INTERFACE):
            raise NotFungible(f"{address} is not a fungible ledger")
        return self._contracts[address]

    def non_fungible(self, address: str) -> NonFungibleLedger:
        if not self.supports(address, NON_FUNGIBLE_INTERFACE):
            raise NotNonFungible(f"{address} is not a non-fungible ledger")
        return self._contracts[address]
