from dataclasses import dataclass
from typing import Any, Optional

from inft.access.domain.roles import (
    FEATURE_DEPOSITS,
    FEATURE_LINKING,
    FEATURE_UNLINKING,
    FEATURE_WITHDRAWALS,
    ROLE_BURNER,
    ROLE_EDITOR,
    ROLE_MINTER,
)
from inft.access.services.access_control import BitmaskAccessControl
from inft.binding.services.binding_registry import StandardBindingRegistry
from inft.binding.store.binding_store import BindingStore, InMemoryBindingStore
from inft.binding.store.sql_binding_store import SqlBindingStore
from inft.config.runtime_profile import RuntimeProfile
from inft.config.settings import Settings
from inft.core.domain.exceptions import EscrowInvariantViolation
from inft.core.events.event_emitter import EventEmitter
from inft.core.events.event_ledger import EventLedger, FileEventLedger, InMemoryEventLedger
from inft.core.logging.structured_logger import StructuredRuntimeLogger
from inft.core.observability.protocol_observer import (
    LoggingProtocolObserver,
    NullProtocolObserver,
    ProtocolObserver,
)
from inft.core.time.time_source import SystemTimeSource, TimeSource
from inft.core.transaction.coordinator import TransactionCoordinator
from inft.ledgers.adapters.contract_directory import ContractDirectory
from inft.ledgers.adapters.in_memory_fungible_ledger import InMemoryFungibleLedger
from inft.ledgers.adapters.in_memory_non_fungible_ledger import InMemoryNonFungibleLedger
from inft.linking.domain.pricing_policy import PricingPolicy
from inft.linking.services.linking_orchestrator import LinkingOrchestrator
from inft.linking.services.next_id_allocator import NextIdAllocator
from inft.linking.store.sql_linker_state_store import SqlLinkerStateStore

LINKER_ROLES = ROLE_MINTER | ROLE_BURNER | ROLE_EDITOR
LINKER_FEATURES = FEATURE_LINKING | FEATURE_UNLINKING | FEATURE_DEPOSITS | FEATURE_WITHDRAWALS


@dataclass(frozen=True)
class ProtocolRuntimeConfig:
    deployer: str = "deployer"
    registry_address: str = "inft-registry"
    orchestrator_address: str = "intelli-linker"
    collateral_token_address: str = "ali-token"
    personality_contract_address: str = "personality-pod"

    registry_name: str = "Intelligent NFT v2"
    registry_symbol: str = "iNFT"
    link_price: int = 2_000 * 10 ** 18
    link_fee: int = 0
    fee_destination: Optional[str] = None
    next_id_seed: int = 0x2_0000_0000

    # None keeps bindings in memory
    database_url: Optional[str] = None
    event_log_path: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> 'ProtocolRuntimeConfig':
        values = dict(
            registry_name=settings.REGISTRY_NAME,
            registry_symbol=settings.REGISTRY_SYMBOL,
            link_price=settings.LINK_PRICE,
            link_fee=settings.LINK_FEE,
            fee_destination=settings.FEE_DESTINATION,
            next_id_seed=settings.NEXT_ID_SEED,
            database_url=settings.DATABASE_URL,
        )
        values.update(overrides)
        return cls(**values)


class ProtocolRuntime:
    """
    In-process wiring of the linking protocol:
    coordinator -> ledgers -> access gates -> registry -> orchestrator.

    The deployer holds full privileges on both gates. The orchestrator is
    granted minter, burner and editor roles on the registry, and linking,
    unlinking, deposits and withdrawals are enabled.

    With a database url the bindings and the linker state (next id, pricing,
    whitelist) are persisted. Ledgers always start empty, so the escrow
    invariants are verified once the wiring is complete and a store whose
    bindings the ledgers cannot back is rejected.
    """

    def __init__(
        self,
        config: Optional[ProtocolRuntimeConfig] = None,
        profile: Optional[RuntimeProfile] = None,
        time_source: Optional[TimeSource] = None,
        store: Optional[BindingStore] = None,
        event_ledger: Optional[EventLedger] = None,
        observer: Optional[ProtocolObserver] = None,
        structured_logger: Optional[StructuredRuntimeLogger] = None,
    ):
        self.config = config or ProtocolRuntimeConfig()
        self.profile = profile or RuntimeProfile.test()
        self.time_source = time_source or SystemTimeSource()

        self.coordinator = TransactionCoordinator()
        self.event_ledger = event_ledger or self._build_event_ledger()
        self.structured_logger = structured_logger
        self.observer = observer or self._build_observer()
        self.emitter = EventEmitter(
            ledger=self.event_ledger,
            observer=self.observer,
            time_source=self.time_source
        )

        self.directory = ContractDirectory(self.coordinator)
        self.collateral_token = self.directory.register(
            InMemoryFungibleLedger(self.config.collateral_token_address, symbol="ALI")
        )
        self.personality_ledger = self.directory.register(
            InMemoryNonFungibleLedger(self.config.personality_contract_address, name="Personality Pod")
        )

        self.store = store or self._build_store()
        self.linker_state_store = self._build_linker_state_store()

        deployer = self.config.deployer
        self.registry_gate = BitmaskAccessControl(self.config.registry_address, deployer, self.emitter)
        self.orchestrator_gate = BitmaskAccessControl(self.config.orchestrator_address, deployer, self.emitter)

        self.registry = StandardBindingRegistry(
            address=self.config.registry_address,
            collateral_token=self.config.collateral_token_address,
            directory=self.directory,
            store=self.store,
            gate=self.registry_gate,
            coordinator=self.coordinator,
            emitter=self.emitter,
            profile=self.profile,
            name=self.config.registry_name,
            symbol=self.config.registry_symbol,
        )
        self.orchestrator = LinkingOrchestrator(
            address=self.config.orchestrator_address,
            registry=self.registry,
            collateral_token=self.config.collateral_token_address,
            personality_contract=self.config.personality_contract_address,
            directory=self.directory,
            gate=self.orchestrator_gate,
            coordinator=self.coordinator,
            emitter=self.emitter,
            pricing=PricingPolicy(
                price=self.config.link_price,
                fee=self.config.link_fee,
                fee_destination=self.config.fee_destination,
            ),
            allocator=NextIdAllocator(self.config.next_id_seed),
            state_store=self.linker_state_store,
        )

        self.registry_gate.update_role(deployer, self.config.orchestrator_address, LINKER_ROLES)
        self.orchestrator_gate.update_features(deployer, LINKER_FEATURES)

        try:
            self.registry.verify_invariants()
        except EscrowInvariantViolation:
            self.close()
            raise

    def _build_event_ledger(self) -> EventLedger:
        if self.profile.persist_events and self.config.event_log_path:
            return FileEventLedger(self.config.event_log_path)
        return InMemoryEventLedger()

    def _build_observer(self) -> ProtocolObserver:
        if self.profile.structured_logging:
            self.structured_logger = self.structured_logger or StructuredRuntimeLogger()
            return LoggingProtocolObserver(self.structured_logger)
        return NullProtocolObserver()

    def _build_store(self) -> BindingStore:
        if self.config.database_url:
            return SqlBindingStore.from_url(self.config.database_url)
        return InMemoryBindingStore()

    def _build_linker_state_store(self) -> Optional[SqlLinkerStateStore]:
        if isinstance(self.store, SqlBindingStore):
            return SqlLinkerStateStore(self.store.session)
        return None

    def close(self) -> None:
        if isinstance(self.store, SqlBindingStore):
            self.store.close()

    def register_target_contract(self, address: str, name: str = "") -> InMemoryNonFungibleLedger:
        """Adds an in-memory target NFT ledger reachable through the directory."""
        return self.directory.register(InMemoryNonFungibleLedger(address, name=name))
