import pytest

from inft.core.domain.exceptions import InvalidPricing, ValidationError
from inft.core.transaction.coordinator import TransactionCoordinator
from inft.linking.domain.pricing_policy import DEFAULT_LINK_PRICE, MIN_PRICING_UNIT, PricingPolicy
from inft.linking.domain.whitelist import TargetContractWhitelist, WhitelistMask
from inft.linking.services.next_id_allocator import NEXT_ID_SEED, NextIdAllocator


# --- Pricing ---

def test_default_pricing():
    policy = PricingPolicy()

    assert policy.price == DEFAULT_LINK_PRICE
    assert policy.link_split() == (0, DEFAULT_LINK_PRICE)


@pytest.mark.parametrize("price, fee, destination", [
    (100, 101, "treasury"),
    (100, 10, None),
    (100, 0, "treasury"),
    (-1, 0, None),
    (2 ** 96, 0, None),
])
def test_invalid_pricing(price, fee, destination):
    with pytest.raises(InvalidPricing):
        PricingPolicy(price=price, fee=fee, fee_destination=destination)


@pytest.mark.parametrize("price, fee, destination, message", [
    (MIN_PRICING_UNIT - 1, 0, None, "invalid price"),
    (2 * MIN_PRICING_UNIT, MIN_PRICING_UNIT - 1, "treasury", "invalid linking fee/treasury"),
    (2 * MIN_PRICING_UNIT, 1, "treasury", "invalid linking fee/treasury"),
])
def test_update_rejects_values_below_minimum_unit(price, fee, destination, message):
    with pytest.raises(InvalidPricing, match=message):
        PricingPolicy.for_update(price, fee, destination)


def test_update_accepts_zero_and_minimum_unit():
    assert PricingPolicy.for_update(0).link_split() == (0, 0)

    policy = PricingPolicy.for_update(2 * MIN_PRICING_UNIT, MIN_PRICING_UNIT, "treasury")

    assert policy.link_split() == (MIN_PRICING_UNIT, MIN_PRICING_UNIT)
    with pytest.raises(InvalidPricing):
        PricingPolicy.for_update(MIN_PRICING_UNIT, 0, "treasury")


def test_deposit_split_follows_link_ratio():
    policy = PricingPolicy(price=2000, fee=200, fee_destination="treasury")

    assert policy.link_split() == (200, 1800)
    assert policy.split(2000) == (200, 1800)
    assert policy.split(7) == (0, 7)
    assert PricingPolicy(price=0).split(500) == (0, 500)


# --- Whitelist ---

def test_whitelist_bits_are_independent():
    whitelist = TargetContractWhitelist()

    old, new = whitelist.set_mask("targets", WhitelistMask.ALLOW_UNLINKING)

    assert old == WhitelistMask.NONE
    assert new == WhitelistMask.ALLOW_UNLINKING
    assert not whitelist.allows_linking("targets")
    assert whitelist.allows_unlinking("targets")

    whitelist.set_mask("targets", WhitelistMask.NONE)
    assert whitelist.contracts() == []


def test_whitelist_rolls_back():
    coordinator = TransactionCoordinator()
    whitelist = TargetContractWhitelist()
    coordinator.enlist(whitelist)
    whitelist.set_mask("targets", WhitelistMask.ALLOW_LINKING)

    with pytest.raises(ValidationError):
        with coordinator.atomic():
            whitelist.set_mask("targets", WhitelistMask.ALLOW_LINKING | WhitelistMask.ALLOW_UNLINKING)
            raise ValidationError("boom")

    assert whitelist.mask_of("targets") == WhitelistMask.ALLOW_LINKING


# --- Id allocation ---

def test_allocator_is_strictly_increasing():
    allocator = NextIdAllocator()

    assert allocator.allocate() == NEXT_ID_SEED
    assert allocator.allocate() == NEXT_ID_SEED + 1
    assert allocator.next_id == NEXT_ID_SEED + 2


def test_allocator_never_rewinds():
    allocator = NextIdAllocator(10)

    assert allocator.fast_forward(20) == 10
    with pytest.raises(ValidationError, match="value too low"):
        allocator.fast_forward(20)
    with pytest.raises(ValidationError):
        allocator.fast_forward(2 ** 256)


def test_allocator_rolls_back():
    coordinator = TransactionCoordinator()
    allocator = NextIdAllocator(5)
    coordinator.enlist(allocator)

    with pytest.raises(ValidationError):
        with coordinator.atomic():
            allocator.allocate()
            raise ValidationError("boom")

    assert allocator.next_id == 5
