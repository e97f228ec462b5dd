from abc import ABC, abstractmethod

FUNGIBLE_INTERFACE = "fungible-ledger"


class FungibleLedger(ABC):
    """
    Collateral token collaborator.
    `transfer` moves the sender's own balance; `transfer_from` moves a
    balance on behalf of `sender` and consumes the spender's allowance.
    """
    address: str

    @abstractmethod
    def balance_of(self, owner: str) -> int:
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        pass

    @abstractmethod
    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int) -> None:
        pass

    @abstractmethod
    def supports_interface(self, interface: str) -> bool:
        pass
