import logging

from inft.binding.domain.binding import AssetRef
from inft.config.runtime_profile import RuntimeProfile
from inft.config.settings import settings
from inft.core.domain.exceptions import CollateralFloorViolation
from inft.runtime.protocol_runtime import ProtocolRuntime, ProtocolRuntimeConfig

UNIT = 10 ** 18


def main():
    logging.basicConfig(level=settings.LOG_LEVEL)
    print("Initializing DEV environment...")

    # 1. Runtime (bindings kept in memory, events written to ./dev_events.jsonl)
    config = ProtocolRuntimeConfig.from_settings(
        settings,
        link_price=2000 * UNIT,
        link_fee=200 * UNIT,
        fee_destination="treasury",
        database_url=None,
        event_log_path="./dev_events.jsonl",
    )
    runtime = ProtocolRuntime(config, RuntimeProfile.dev())
    registry = runtime.registry
    orchestrator = runtime.orchestrator

    # 2. Target collection, whitelisted both ways
    targets = runtime.register_target_contract("dev-targets", name="Dev Targets")
    orchestrator.whitelist_target_contract(config.deployer, "dev-targets", True, True)

    # 3. Holder with a personality, a target and enough ALI
    holder = "alice"
    runtime.personality_ledger.mint(holder, 1)
    targets.mint(holder, 42)
    runtime.collateral_token.mint(holder, 10_000 * UNIT)
    runtime.personality_ledger.set_approval_for_all(holder, config.orchestrator_address, True)
    runtime.collateral_token.approve(holder, config.orchestrator_address, 10_000 * UNIT)

    # 4. link -> deposit -> withdraw -> unlink
    binding_id = orchestrator.link(holder, 1, "dev-targets", 42)
    print(f"Linked iNFT {binding_id:#x}: collateral {registry.binding_of(binding_id).collateral_value // UNIT} ALI")

    orchestrator.deposit(holder, binding_id, 2000 * UNIT)
    print(f"Deposit 2000 ALI: collateral {registry.binding_of(binding_id).collateral_value // UNIT} ALI")

    orchestrator.withdraw(holder, binding_id, 1600 * UNIT)
    print(f"Withdraw 1600 ALI: collateral {registry.binding_of(binding_id).collateral_value // UNIT} ALI")

    try:
        orchestrator.withdraw(holder, binding_id, 1)
    except CollateralFloorViolation as e:
        print(f"Withdraw below the link price rejected: {e}")

    orchestrator.unlink(holder, binding_id)
    print(f"Unlinked: {holder} holds {runtime.collateral_token.balance_of(holder) // UNIT} ALI, "
          f"treasury {runtime.collateral_token.balance_of('treasury') // UNIT} ALI")

    # 5. Privileged re-mint of the same id
    runtime.personality_ledger.transfer_from(holder, holder, registry.address, 1)
    registry.mint(
        config.deployer,
        binding_id,
        0,
        AssetRef(config.personality_contract_address, 1),
        AssetRef("dev-targets", 42)
    )
    registry.verify_invariants()
    print(f"Re-minted iNFT {binding_id:#x}, total supply {registry.total_supply}")

    print(f"Dev run complete. {len(runtime.event_ledger.get_history())} events recorded.")


if __name__ == "__main__":
    main()
