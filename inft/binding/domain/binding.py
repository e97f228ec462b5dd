from dataclasses import dataclass, replace
from typing import Final

from inft.core.domain.exceptions import ValidationError

MAX_BINDING_ID: Final[int] = (1 << 256) - 1
MAX_TOKEN_ID: Final[int] = (1 << 256) - 1
MAX_COLLATERAL_VALUE: Final[int] = (1 << 96) - 1


@dataclass(frozen=True)
class AssetRef:
    """
    (contract, token id) reference to a non-fungible asset.
    """
    contract: str
    token_id: int

    def __post_init__(self):
        if not self.contract:
            raise ValidationError("asset contract address is not set")
        if not isinstance(self.token_id, int) or not 0 <= self.token_id <= MAX_TOKEN_ID:
            raise ValidationError(f"token id out of range: {self.token_id!r}")

    def offset(self, delta: int) -> 'AssetRef':
        return AssetRef(self.contract, self.token_id + delta)


@dataclass(frozen=True)
class Binding:
    """
    Immutable iNFT record: escrowed personality + collateral bound to a target asset.
    The owner is intentionally absent; it is always derived from the target ledger.
    """
    id: int
    personality: AssetRef
    target: AssetRef
    collateral_value: int

    def with_collateral(self, value: int) -> 'Binding':
        return replace(self, collateral_value=value)


def validate_binding_id(binding_id: int) -> int:
    if not isinstance(binding_id, int) or isinstance(binding_id, bool) or not 0 <= binding_id <= MAX_BINDING_ID:
        raise ValidationError(f"binding id out of range: {binding_id!r}")
    return binding_id


def validate_collateral_value(value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= MAX_COLLATERAL_VALUE:
        raise ValidationError(f"collateral value out of range: {value!r}")
    return value
