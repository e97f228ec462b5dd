from abc import ABC, abstractmethod

NON_FUNGIBLE_INTERFACE = "non-fungible-ledger"


class NonFungibleLedger(ABC):
    """
    Ownership ledger of one non-fungible asset class (personality or target).
    """
    address: str

    @abstractmethod
    def owner_of(self, token_id: int) -> str:
        """Raises TokenNotFound for tokens that do not exist."""
        pass

    @abstractmethod
    def transfer_from(self, operator: str, sender: str, recipient: str, token_id: int) -> None:
        pass

    @abstractmethod
    def supports_interface(self, interface: str) -> bool:
        pass
