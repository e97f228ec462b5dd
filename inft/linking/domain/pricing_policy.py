from dataclasses import dataclass
from typing import Optional, Tuple

from inft.core.domain.exceptions import InvalidPricing

DEFAULT_LINK_PRICE = 2_000 * 10 ** 18
MAX_LINK_PRICE = (1 << 96) - 1

# smallest non-zero price or fee accepted by an update
MIN_PRICING_UNIT = 10 ** 12


@dataclass(frozen=True)
class PricingPolicy:
    """
    Link price, the part of it taken as a fee, and where the fee goes.
    The fee is zero exactly when no fee destination is set, and never exceeds the price.
    """
    price: int = DEFAULT_LINK_PRICE
    fee: int = 0
    fee_destination: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.price <= MAX_LINK_PRICE:
            raise InvalidPricing(f"link price out of range: {self.price}")
        if self.fee < 0:
            raise InvalidPricing("negative link fee")
        if self.fee > self.price:
            raise InvalidPricing("fee cannot exceed the price")
        if self.fee == 0 and self.fee_destination:
            raise InvalidPricing("fee destination is set but fee is zero")
        if self.fee > 0 and not self.fee_destination:
            raise InvalidPricing("fee is set but fee destination is not")

    @classmethod
    def for_update(cls, price: int, fee: int = 0, fee_destination: Optional[str] = None) -> "PricingPolicy":
        """Policy built from an administrative update: non-zero values must reach the minimum unit."""
        if 0 < price < MIN_PRICING_UNIT:
            raise InvalidPricing("invalid price")
        if 0 < fee < MIN_PRICING_UNIT:
            raise InvalidPricing("invalid linking fee/treasury")
        return cls(price=price, fee=fee, fee_destination=fee_destination)

    def link_split(self) -> Tuple[int, int]:
        """(fee, collateral) amounts pulled from the linker."""
        return self.fee, self.price - self.fee

    def split(self, amount: int) -> Tuple[int, int]:
        """
        Splits a deposit in the same proportion as the link price.
        Returns (fee, collateral); no fee is taken when the price is zero.
        """
        if self.price == 0:
            return 0, amount
        fee = amount * self.fee // self.price
        return fee, amount - fee
