import pytest

from inft.access.services.access_control import BitmaskAccessControl
from inft.binding.domain.binding import AssetRef, Binding
from inft.binding.services.binding_registry import StandardBindingRegistry
from inft.binding.store.sql_binding_store import SqlBindingStore
from inft.core.domain.exceptions import NotBound, TargetAlreadyBound
from inft.core.events.event_emitter import EventEmitter
from inft.core.transaction.coordinator import TransactionCoordinator
from inft.ledgers.adapters.contract_directory import ContractDirectory
from inft.ledgers.adapters.in_memory_fungible_ledger import InMemoryFungibleLedger
from inft.ledgers.adapters.in_memory_non_fungible_ledger import InMemoryNonFungibleLedger

BIG_ID = 2 ** 255 + 7
BIG_TOKEN = 2 ** 200


@pytest.fixture
def store():
    store = SqlBindingStore.from_url("sqlite://")
    yield store
    store.close()


def _binding(binding_id: int, personality_id: int, target_id: int, collateral: int = 0) -> Binding:
    return Binding(
        id=binding_id,
        personality=AssetRef("pods", personality_id),
        target=AssetRef("targets", target_id),
        collateral_value=collateral
    )


def test_insert_and_lookup_wide_values(store):
    store.insert(_binding(BIG_ID, BIG_TOKEN, BIG_TOKEN + 1, 2 ** 96 - 1))

    loaded = store.get(BIG_ID)

    assert loaded.personality.token_id == BIG_TOKEN
    assert store.find_by_personality(AssetRef("pods", BIG_TOKEN)) == BIG_ID
    assert store.find_by_target(AssetRef("targets", BIG_TOKEN + 1)) == BIG_ID
    assert store.total_collateral() == 2 ** 96 - 1
    assert store.count() == 1


def test_counters_follow_updates_and_removal(store):
    store.insert(_binding(1, 1, 11, 100))
    store.insert(_binding(2, 2, 12, 50))

    store.update_collateral(1, 30)
    removed = store.remove(2)

    assert removed.collateral_value == 50
    assert store.total_collateral() == 30
    assert store.count() == 1
    assert [b.id for b in store.list_all()] == [1]
    assert store.find_by_target(AssetRef("targets", 12)) is None
    with pytest.raises(NotBound):
        store.remove(2)


def test_rollback_discards_flushed_changes(store):
    store.insert(_binding(1, 1, 11, 100))

    savepoint = store.savepoint()
    store.update_collateral(1, 500)
    store.insert(_binding(2, 2, 12, 10))
    store.rollback(savepoint)

    assert store.get(1).collateral_value == 100
    assert store.get(2) is None
    assert store.total_collateral() == 100
    assert store.count() == 1


def test_registry_on_sql_store_rolls_back_failed_mint(store):
    coordinator = TransactionCoordinator()
    directory = ContractDirectory(coordinator)
    token = directory.register(InMemoryFungibleLedger("ali"))
    pods = directory.register(InMemoryNonFungibleLedger("pods"))
    targets = directory.register(InMemoryNonFungibleLedger("targets"))
    emitter = EventEmitter()
    registry = StandardBindingRegistry(
        address="registry",
        collateral_token="ali",
        directory=directory,
        store=store,
        gate=BitmaskAccessControl("registry", "deployer", emitter),
        coordinator=coordinator,
        emitter=emitter
    )
    token.mint("registry", 200)
    pods.mint("registry", 1)
    pods.mint("registry", 2)
    targets.mint("alice", 11)

    registry.mint("deployer", 1, 200, AssetRef("pods", 1), AssetRef("targets", 11))
    with pytest.raises(TargetAlreadyBound):
        registry.mint("deployer", 2, 0, AssetRef("pods", 2), AssetRef("targets", 11))

    assert registry.total_supply == 1
    assert registry.total_collateral == 200
    assert registry.owner_of(1) == "alice"

    registry.burn("deployer", 1)

    assert registry.total_supply == 0
    assert token.balance_of("alice") == 200
    assert pods.owner_of(1) == "alice"
