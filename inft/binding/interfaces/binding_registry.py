from abc import ABC, abstractmethod
from typing import List, Optional

from inft.binding.domain.binding import AssetRef, Binding


class BindingRegistry(ABC):
    """
    Interface for the iNFT binding registry.
    Owns binding records, both reverse indices and the collateral counter;
    ownership of a binding is always derived from its target asset.
    """

    address: str

    @abstractmethod
    def mint(
            self,
            caller: str,
            binding_id: int,
            collateral_value: int,
            personality: AssetRef,
            target: AssetRef
    ) -> Binding:
        pass

    @abstractmethod
    def mint_batch(
            self,
            caller: str,
            start_id: int,
            per_item_collateral: int,
            personality: AssetRef,
            target: AssetRef,
            n: int
    ) -> List[Binding]:
        pass

    @abstractmethod
    def burn(self, caller: str, binding_id: int, recipient: Optional[str] = None) -> Binding:
        pass

    @abstractmethod
    def increase_collateral(self, caller: str, binding_id: int, delta: int) -> Binding:
        pass

    @abstractmethod
    def decrease_collateral(self, caller: str, binding_id: int, delta: int, recipient: str) -> Binding:
        pass

    @abstractmethod
    def owner_of(self, binding_id: int) -> str:
        pass

    @abstractmethod
    def exists(self, binding_id: int) -> bool:
        pass

    @abstractmethod
    def binding_of(self, binding_id: int) -> Optional[Binding]:
        pass

    @abstractmethod
    def binding_id_by_personality(self, personality: AssetRef) -> Optional[int]:
        pass

    @abstractmethod
    def binding_id_by_target(self, target: AssetRef) -> Optional[int]:
        pass

    @property
    @abstractmethod
    def total_supply(self) -> int:
        pass

    @property
    @abstractmethod
    def total_collateral(self) -> int:
        pass
