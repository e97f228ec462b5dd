import logging
from typing import Optional

from inft.access.domain.roles import (
    FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_LINKING,
    FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_UNLINKING,
    FEATURE_DEPOSITS,
    FEATURE_LINKING,
    FEATURE_UNLINKING,
    FEATURE_WITHDRAWALS,
    ROLE_LINK_PRICE_MANAGER,
    ROLE_NEXT_ID_MANAGER,
    ROLE_WHITELIST_MANAGER,
)
from inft.access.interfaces.capability_gate import CapabilityGate
from inft.binding.domain.binding import AssetRef, Binding
from inft.binding.interfaces.binding_registry import BindingRegistry
from inft.core.domain.exceptions import (
    AccessDenied,
    CollateralFloorViolation,
    FeatureDisabled,
    NotBound,
    NotOwner,
    NotWhitelistedForLinking,
    NotWhitelistedForUnlinking,
    ValidationError,
)
from inft.core.events.event_emitter import EventEmitter
from inft.core.guard.reentrancy_guard import ReentrancyGuard
from inft.core.transaction.coordinator import TransactionCoordinator
from inft.core.transaction.transactional import Transactional
from inft.ledgers.adapters.contract_directory import ContractDirectory
from inft.ledgers.interfaces.fungible_ledger import FungibleLedger
from inft.ledgers.interfaces.non_fungible_ledger import NonFungibleLedger
from inft.linking.domain.events import (
    LINKED,
    LINK_UPDATED,
    NEXT_ID_CHANGED,
    PRICING_CHANGED,
    UNLINKED,
    WHITELIST_CHANGED,
)
from inft.linking.domain.pricing_policy import PricingPolicy
from inft.linking.domain.whitelist import TargetContractWhitelist, WhitelistMask
from inft.linking.services.next_id_allocator import NextIdAllocator
from inft.linking.store.sql_linker_state_store import LinkerState, SqlLinkerStateStore

logger = logging.getLogger(__name__)


class LinkingOrchestrator(Transactional):
    """
    Public entry point for creating and destroying iNFTs.

    Holds no binding data of its own. It enforces pricing, fee, whitelist and
    ownership policy, moves value between the linker and the registry, and
    asks the registry to mint or burn. The orchestrator must hold the minter,
    burner and editor roles on the registry.

    Every mutating call is a single atomic unit: if a collateral pull, a
    registry check or a reentrant callback fails, no custody, balance,
    allocator, pricing or event change survives. With a state store the
    persisted linker state follows the same unit.
    """

    def __init__(
            self,
            address: str,
            registry: BindingRegistry,
            collateral_token: str,
            personality_contract: str,
            directory: ContractDirectory,
            gate: CapabilityGate,
            coordinator: TransactionCoordinator,
            emitter: EventEmitter,
            pricing: Optional[PricingPolicy] = None,
            allocator: Optional[NextIdAllocator] = None,
            whitelist: Optional[TargetContractWhitelist] = None,
            state_store: Optional[SqlLinkerStateStore] = None
    ):
        if not address:
            raise ValidationError("orchestrator address is not set")
        if registry is None:
            raise ValidationError("binding registry is not set")
        if not collateral_token:
            raise ValidationError("collateral token address is not set")
        if not personality_contract:
            raise ValidationError("personality contract address is not set")

        self.address = address
        self.registry = registry
        self.directory = directory
        self.collateral_token: FungibleLedger = directory.fungible(collateral_token)
        self.personality_ledger: NonFungibleLedger = directory.non_fungible(personality_contract)
        self.personality_contract = personality_contract
        self.gate = gate
        self.coordinator = coordinator
        self.emitter = emitter
        self._pricing = pricing or PricingPolicy()
        self.allocator = allocator or NextIdAllocator()
        self.whitelist = whitelist or TargetContractWhitelist()
        self._guard = ReentrancyGuard("LinkingOrchestrator")
        self.state_store = state_store
        if state_store is not None:
            self._restore(state_store.load())

        coordinator.enlist(self.allocator)
        coordinator.enlist(self.whitelist)
        coordinator.enlist(self)
        coordinator.enlist(emitter)
        if state_store is not None:
            coordinator.enlist(state_store)

    # --- Reads ---

    @property
    def pricing(self) -> PricingPolicy:
        return self._pricing

    @property
    def next_id(self) -> int:
        return self.allocator.next_id

    def whitelist_mask(self, contract: str) -> WhitelistMask:
        return self.whitelist.mask_of(contract)

    def is_allowed_for_linking(self, contract: str) -> bool:
        return (
            self.whitelist.allows_linking(contract)
            or self.gate.is_feature_enabled(FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_LINKING)
        )

    def is_allowed_for_unlinking(self, contract: str) -> bool:
        return (
            self.whitelist.allows_unlinking(contract)
            or self.gate.is_feature_enabled(FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_UNLINKING)
        )

    # --- Linking ---

    def link(self, caller: str, personality_id: int, target_contract: str, target_id: int) -> int:
        with self._guard, self.coordinator.atomic():
            self._require_feature(FEATURE_LINKING, "linking is disabled")

            personality = AssetRef(self.personality_contract, personality_id)
            target = AssetRef(target_contract, target_id)

            if self.personality_ledger.owner_of(personality_id) != caller:
                raise AccessDenied("access denied")
            if not self.is_allowed_for_linking(target_contract):
                raise NotWhitelistedForLinking("not a whitelisted NFT contract")

            binding_id = self.allocator.allocate()
            pricing = self._pricing
            fee, collateral = pricing.link_split()

            registry_address = self.registry.address
            self.personality_ledger.transfer_from(self.address, caller, registry_address, personality_id)
            if pricing.price > 0:
                if fee > 0:
                    self.collateral_token.transfer_from(self.address, caller, pricing.fee_destination, fee)
                if collateral > 0:
                    self.collateral_token.transfer_from(self.address, caller, registry_address, collateral)

            self.registry.mint(self.address, binding_id, collateral, personality, target)
            self._persist()
            self.emitter.emit(
                LINKED,
                by=caller,
                binding_id=binding_id,
                linker=caller,
                price=pricing.price,
                fee=fee,
                personality_contract=personality.contract,
                personality_id=personality.token_id,
                target_contract=target.contract,
                target_id=target.token_id
            )
            logger.info("Linked personality %d to %s#%d as iNFT %d", personality_id, target_contract, target_id, binding_id)
            return binding_id

    def unlink(self, caller: str, binding_id: int) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_feature(FEATURE_UNLINKING, "unlinking is disabled")
            binding = self.registry.binding_of(binding_id)
            if binding is None:
                raise NotBound("not bound")
            return self._unlink(caller, binding)

    def unlink_by_target(self, caller: str, target_contract: str, target_id: int) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_feature(FEATURE_UNLINKING, "unlinking is disabled")
            binding_id = self.registry.binding_id_by_target(AssetRef(target_contract, target_id))
            if binding_id is None:
                raise NotBound("not bound")
            return self._unlink(caller, self.registry.binding_of(binding_id))

    def _unlink(self, caller: str, binding: Binding) -> Binding:
        owner = self.registry.owner_of(binding.id)
        if owner != caller:
            raise NotOwner("not an owner")
        # the recorded target contract decides, not whatever the caller passed in
        if not self.is_allowed_for_unlinking(binding.target.contract):
            raise NotWhitelistedForUnlinking("not a whitelisted NFT contract")

        burnt = self.registry.burn(self.address, binding.id, recipient=owner)
        self.emitter.emit(
            UNLINKED,
            by=caller,
            binding_id=binding.id,
            linker=caller,
            collateral_value=binding.collateral_value,
            personality_contract=binding.personality.contract,
            personality_id=binding.personality.token_id,
            target_contract=binding.target.contract,
            target_id=binding.target.token_id
        )
        logger.info("Unlinked iNFT %d", binding.id)
        return burnt

    # --- Collateral ---

    def deposit(self, caller: str, binding_id: int, amount: int) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_feature(FEATURE_DEPOSITS, "deposits are disabled")
            if amount <= 0:
                raise ValidationError("zero value")
            updated = self._require_owner(caller, binding_id)

            fee, collateral = self._pricing.split(amount)
            if fee > 0:
                self.collateral_token.transfer_from(self.address, caller, self._pricing.fee_destination, fee)
            if collateral > 0:
                self.collateral_token.transfer_from(self.address, caller, self.registry.address, collateral)
                updated = self.registry.increase_collateral(self.address, binding_id, collateral)

            self.emitter.emit(LINK_UPDATED, by=caller, binding_id=binding_id, collateral_delta=collateral, fee=fee)
            return updated

    def withdraw(self, caller: str, binding_id: int, amount: int) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_feature(FEATURE_WITHDRAWALS, "withdrawals are disabled")
            if amount <= 0:
                raise ValidationError("zero value")
            binding = self._require_owner(caller, binding_id)

            if binding.collateral_value < amount + self._pricing.price:
                raise CollateralFloorViolation("deposit too low")

            updated = self.registry.decrease_collateral(self.address, binding_id, amount, recipient=caller)
            self.emitter.emit(LINK_UPDATED, by=caller, binding_id=binding_id, collateral_delta=-amount, fee=0)
            return updated

    # --- Administration ---

    def update_link_price(
            self,
            caller: str,
            price: int,
            fee: int = 0,
            fee_destination: Optional[str] = None
    ) -> PricingPolicy:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_LINK_PRICE_MANAGER)
            policy = PricingPolicy.for_update(price, fee, fee_destination)
            self._pricing = policy
            self._persist()
            self.emitter.emit(
                PRICING_CHANGED,
                by=caller,
                price=policy.price,
                fee=policy.fee,
                fee_destination=policy.fee_destination
            )
            return policy

    def update_next_id(self, caller: str, value: int) -> int:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_NEXT_ID_MANAGER)
            old_value = self.allocator.fast_forward(value)
            self._persist()
            self.emitter.emit(NEXT_ID_CHANGED, by=caller, old_value=old_value, new_value=value)
            return value

    def whitelist_target_contract(
            self,
            caller: str,
            target_contract: str,
            allow_linking: bool,
            allow_unlinking: bool
    ) -> WhitelistMask:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_WHITELIST_MANAGER)
            if not target_contract:
                raise ValidationError("target NFT contract address is not set")

            mask = WhitelistMask.NONE
            if allow_linking:
                mask |= WhitelistMask.ALLOW_LINKING
            if allow_unlinking:
                mask |= WhitelistMask.ALLOW_UNLINKING
            # removal accepts any address; only additions are probed
            if mask:
                self.directory.non_fungible(target_contract)

            old_mask, new_mask = self.whitelist.set_mask(target_contract, mask)
            self._persist()
            self.emitter.emit(
                WHITELIST_CHANGED,
                by=caller,
                target_contract=target_contract,
                old_mask=int(old_mask),
                new_mask=int(new_mask)
            )
            return new_mask

    # --- Persistence ---

    def _restore(self, state: Optional[LinkerState]) -> None:
        if state is None:
            return
        if state.next_id > self.allocator.next_id:
            self.allocator.fast_forward(state.next_id)
        self._pricing = state.pricing
        for contract, mask in state.whitelist.items():
            self.whitelist.set_mask(contract, mask)
        logger.info("Restored linker state: next id %d, %d whitelisted contracts", self.next_id, len(state.whitelist))

    def _persist(self) -> None:
        if self.state_store is not None:
            self.state_store.save(LinkerState(self.allocator.next_id, self._pricing, self.whitelist.masks()))

    # --- Guards ---

    def _require_feature(self, feature: int, message: str) -> None:
        if not self.gate.is_feature_enabled(feature):
            raise FeatureDisabled(message)

    def _require_role(self, caller: str, role: int) -> None:
        if not self.gate.caller_has_role(caller, role):
            raise AccessDenied("access denied")

    def _require_owner(self, caller: str, binding_id: int) -> Binding:
        binding = self.registry.binding_of(binding_id)
        if binding is None:
            raise NotBound("not bound")
        if self.registry.owner_of(binding_id) != caller:
            raise NotOwner("not an owner")
        return binding

    # --- Transactional ---

    def savepoint(self):
        return self._pricing

    def rollback(self, savepoint) -> None:
        self._pricing = savepoint

    def release(self, savepoint) -> None:
        pass
