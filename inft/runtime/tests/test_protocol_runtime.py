import logging

import pytest

from inft.access.domain.roles import (
    FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_LINKING,
    FEATURE_DEPOSITS,
    FEATURE_LINKING,
    FEATURE_UNLINKING,
    FEATURE_WITHDRAWALS,
    ROLE_BURNER,
    ROLE_EDITOR,
    ROLE_MINTER,
    ROLE_URI_MANAGER,
)
from inft.binding.store.binding_store import InMemoryBindingStore
from inft.binding.store.sql_binding_store import SqlBindingStore
from inft.config.runtime_profile import RuntimeProfile
from inft.config.settings import Settings
from inft.core.domain.exceptions import EscrowInvariantViolation, InvalidPricing, TransferNotAuthorized
from inft.core.events.event_ledger import FileEventLedger, InMemoryEventLedger
from inft.core.observability.protocol_observer import LoggingProtocolObserver, NullProtocolObserver
from inft.linking.domain.events import LINKED
from inft.linking.domain.whitelist import WhitelistMask
from inft.runtime.protocol_runtime import ProtocolRuntime, ProtocolRuntimeConfig


def test_default_wiring_grants_linker_roles_and_features():
    runtime = ProtocolRuntime()
    orchestrator = runtime.config.orchestrator_address

    assert runtime.registry_gate.caller_has_role(orchestrator, ROLE_MINTER | ROLE_BURNER | ROLE_EDITOR)
    assert not runtime.registry_gate.caller_has_role(orchestrator, ROLE_URI_MANAGER)
    for feature in (FEATURE_LINKING, FEATURE_UNLINKING, FEATURE_DEPOSITS, FEATURE_WITHDRAWALS):
        assert runtime.orchestrator_gate.is_feature_enabled(feature)
    assert not runtime.orchestrator_gate.is_feature_enabled(FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_LINKING)

    assert isinstance(runtime.store, InMemoryBindingStore)
    assert isinstance(runtime.event_ledger, InMemoryEventLedger)
    assert isinstance(runtime.observer, NullProtocolObserver)
    assert runtime.orchestrator.pricing.price == 2_000 * 10 ** 18
    assert runtime.orchestrator.next_id == 0x2_0000_0000
    assert runtime.registry.name == "Intelligent NFT v2"
    assert runtime.registry.symbol == "iNFT"


def test_config_from_settings(tmp_path):
    settings = Settings(
        DATABASE_URL="sqlite://",
        LINK_PRICE=5000,
        LINK_FEE=50,
        FEE_DESTINATION="vault",
        NEXT_ID_SEED=1000,
        REGISTRY_SYMBOL="TEST",
    )

    config = ProtocolRuntimeConfig.from_settings(settings, event_log_path=str(tmp_path / "events.jsonl"))
    runtime = ProtocolRuntime(config, RuntimeProfile.dev())

    assert isinstance(runtime.store, SqlBindingStore)
    assert isinstance(runtime.event_ledger, FileEventLedger)
    assert isinstance(runtime.observer, LoggingProtocolObserver)
    assert runtime.orchestrator.pricing.fee_destination == "vault"
    assert runtime.orchestrator.next_id == 1000
    assert runtime.registry.symbol == "TEST"
    runtime.store.close()


def test_dev_profile_logs_committed_events(tmp_path, caplog):
    config = ProtocolRuntimeConfig(link_price=0, event_log_path=str(tmp_path / "events.jsonl"))
    runtime = ProtocolRuntime(config, RuntimeProfile.dev())
    targets = runtime.register_target_contract("targets")
    runtime.orchestrator.whitelist_target_contract(config.deployer, "targets", True, True)
    runtime.personality_ledger.mint("alice", 1)
    runtime.personality_ledger.approve("alice", config.orchestrator_address, 1)
    targets.mint("alice", 7)

    with caplog.at_level(logging.INFO, logger="inft.events"):
        binding_id = runtime.orchestrator.link("alice", 1, "targets", 7)

    assert any('"event_type": "LINKED"' in r.getMessage() for r in caplog.records)
    persisted = FileEventLedger(config.event_log_path).get_history(LINKED)
    assert persisted[-1].payload["binding_id"] == binding_id


def test_invalid_pricing_configuration_is_rejected():
    with pytest.raises(InvalidPricing):
        ProtocolRuntime(ProtocolRuntimeConfig(link_price=100, link_fee=10))


def _link_at_zero_price(runtime, holder: str, personality_id: int, target_id: int) -> int:
    runtime.personality_ledger.mint(holder, personality_id)
    runtime.personality_ledger.approve(holder, runtime.config.orchestrator_address, personality_id)
    runtime.directory.non_fungible("targets").mint(holder, target_id)
    return runtime.orchestrator.link(holder, personality_id, "targets", target_id)


def test_restart_resumes_persisted_linker_state(tmp_path):
    config = ProtocolRuntimeConfig(link_price=0, database_url=f"sqlite:///{tmp_path / 'inft.db'}")
    first = ProtocolRuntime(config)
    first.register_target_contract("targets")
    first.orchestrator.whitelist_target_contract(config.deployer, "targets", True, True)
    binding_id = _link_at_zero_price(first, "alice", 1, 7)
    first.orchestrator.unlink("alice", binding_id)
    first.orchestrator.update_link_price(config.deployer, 5 * 10 ** 12)
    first.close()

    second = ProtocolRuntime(config)
    second.register_target_contract("targets")

    assert second.orchestrator.next_id == binding_id + 1
    assert second.orchestrator.pricing.price == 5 * 10 ** 12
    assert second.orchestrator.whitelist_mask("targets") == (
        WhitelistMask.ALLOW_LINKING | WhitelistMask.ALLOW_UNLINKING
    )

    second.collateral_token.mint("bob", 5 * 10 ** 12)
    second.collateral_token.approve("bob", config.orchestrator_address, 5 * 10 ** 12)
    second.personality_ledger.mint("bob", 2)
    second.personality_ledger.approve("bob", config.orchestrator_address, 2)
    second.directory.non_fungible("targets").mint("bob", 8)

    assert second.orchestrator.link("bob", 2, "targets", 8) == binding_id + 1
    assert second.registry.total_collateral == 5 * 10 ** 12
    second.close()


def test_restart_rejects_bindings_the_ledgers_cannot_back(tmp_path):
    config = ProtocolRuntimeConfig(link_price=0, database_url=f"sqlite:///{tmp_path / 'inft.db'}")
    first = ProtocolRuntime(config)
    first.register_target_contract("targets")
    first.orchestrator.whitelist_target_contract(config.deployer, "targets", True, True)
    _link_at_zero_price(first, "alice", 1, 7)
    first.close()

    with pytest.raises(EscrowInvariantViolation, match="personality not held in escrow"):
        ProtocolRuntime(config)


def test_failed_link_leaves_persisted_linker_state_untouched():
    runtime = ProtocolRuntime(ProtocolRuntimeConfig(link_price=0, database_url="sqlite://"))
    runtime.register_target_contract("targets")
    runtime.orchestrator.whitelist_target_contract(runtime.config.deployer, "targets", True, True)
    runtime.personality_ledger.mint("alice", 1)

    with pytest.raises(TransferNotAuthorized):
        runtime.orchestrator.link("alice", 1, "targets", 7)

    assert runtime.linker_state_store.load().next_id == runtime.config.next_id_seed
    runtime.close()
