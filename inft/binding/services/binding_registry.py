import logging
from collections import Counter
from typing import Dict, List, Optional

from inft.access.domain.roles import ROLE_BURNER, ROLE_EDITOR, ROLE_MINTER, ROLE_URI_MANAGER
from inft.access.interfaces.capability_gate import CapabilityGate
from inft.binding.domain.binding import (
    AssetRef,
    Binding,
    validate_binding_id,
    validate_collateral_value,
)
from inft.binding.domain.events import (
    BASE_URI_UPDATED,
    BURNT,
    COLLATERAL_UPDATED,
    MINTED,
    TOKEN_URI_UPDATED,
    binding_payload,
)
from inft.binding.interfaces.binding_registry import BindingRegistry
from inft.binding.store.binding_store import BindingStore
from inft.config.runtime_profile import RuntimeProfile
from inft.core.domain.exceptions import (
    AccessDenied,
    AlreadyExists,
    CollateralNotTransferred,
    EscrowInvariantViolation,
    InsufficientCollateral,
    NotBound,
    PersonalityAlreadyBound,
    PersonalityNotEscrowed,
    TargetAlreadyBound,
    TokenNotFound,
    ValidationError,
)
from inft.core.events.event_emitter import EventEmitter
from inft.core.guard.reentrancy_guard import ReentrancyGuard
from inft.core.transaction.coordinator import TransactionCoordinator
from inft.core.transaction.transactional import Transactional
from inft.ledgers.adapters.contract_directory import ContractDirectory
from inft.ledgers.interfaces.fungible_ledger import FungibleLedger
from inft.ledgers.interfaces.non_fungible_ledger import NON_FUNGIBLE_INTERFACE

logger = logging.getLogger(__name__)


class StandardBindingRegistry(BindingRegistry, Transactional):
    """
    Standard implementation of BindingRegistry.

    Holds custody of every bound personality and of all collateral in its own
    name (`address`). Minting never moves fungible value: collateral has to be
    transferred to the registry before the record is created. Burning pays the
    collateral and the personality back out.

    Every mutating entry point runs inside one atomic unit of the coordinator
    and behind a non-reentrant guard. Internal bookkeeping happens before any
    ledger call.
    """

    def __init__(
            self,
            address: str,
            collateral_token: str,
            directory: ContractDirectory,
            store: BindingStore,
            gate: CapabilityGate,
            coordinator: TransactionCoordinator,
            emitter: EventEmitter,
            profile: Optional[RuntimeProfile] = None,
            name: str = "Intelligent NFT v2",
            symbol: str = "iNFT"
    ):
        if not address:
            raise ValidationError("registry address is not set")
        if not collateral_token:
            raise ValidationError("collateral token address is not set")

        self.address = address
        self.directory = directory
        self.collateral_token: FungibleLedger = directory.fungible(collateral_token)
        self.store = store
        self.gate = gate
        self.coordinator = coordinator
        self.emitter = emitter
        self.profile = profile or RuntimeProfile.test()
        self.name = name
        self.symbol = symbol

        self._base_uri = ""
        self._token_uris: Dict[int, str] = {}
        self._guard = ReentrancyGuard("BindingRegistry")

        coordinator.enlist(store)
        coordinator.enlist(self)
        coordinator.enlist(emitter)

    # --- Derived ownership and reads ---

    def owner_of(self, binding_id: int) -> str:
        binding = self.store.get(binding_id)
        if binding is None:
            raise NotBound("iNFT doesn't exist")
        return self.directory.non_fungible(binding.target.contract).owner_of(binding.target.token_id)

    def exists(self, binding_id: int) -> bool:
        return self.store.get(binding_id) is not None

    def binding_of(self, binding_id: int) -> Optional[Binding]:
        return self.store.get(binding_id)

    def binding_id_by_personality(self, personality: AssetRef) -> Optional[int]:
        return self.store.find_by_personality(personality)

    def binding_id_by_target(self, target: AssetRef) -> Optional[int]:
        return self.store.find_by_target(target)

    @property
    def total_supply(self) -> int:
        return self.store.count()

    @property
    def total_collateral(self) -> int:
        return self.store.total_collateral()

    @property
    def base_uri(self) -> str:
        return self._base_uri

    def token_uri(self, binding_id: int) -> str:
        if not self.exists(binding_id):
            raise NotBound("iNFT doesn't exist")
        token_uri = self._token_uris.get(binding_id)
        if token_uri:
            return token_uri
        if self._base_uri:
            return f"{self._base_uri}{binding_id}"
        return ""

    # --- Minting ---

    def mint(
            self,
            caller: str,
            binding_id: int,
            collateral_value: int,
            personality: AssetRef,
            target: AssetRef
    ) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_MINTER)
            binding = self._mint(caller, binding_id, collateral_value, personality, target)
            self._check_invariants()
            return binding

    def mint_batch(
            self,
            caller: str,
            start_id: int,
            per_item_collateral: int,
            personality: AssetRef,
            target: AssetRef,
            n: int
    ) -> List[Binding]:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_MINTER)
            if n < 2:
                raise ValidationError("n is too small")
            validate_binding_id(start_id + n - 1)

            minted = [
                self._mint(
                    caller,
                    start_id + i,
                    per_item_collateral,
                    personality.offset(i),
                    target.offset(i)
                )
                for i in range(n)
            ]
            self._check_invariants()
            return minted

    def _mint(
            self,
            caller: str,
            binding_id: int,
            collateral_value: int,
            personality: AssetRef,
            target: AssetRef
    ) -> Binding:
        validate_binding_id(binding_id)
        validate_collateral_value(collateral_value)

        if self.store.get(binding_id) is not None:
            raise AlreadyExists("iNFT already exists")

        personality_ledger = self.directory.non_fungible(personality.contract)
        self.directory.non_fungible(target.contract)

        try:
            custodian = personality_ledger.owner_of(personality.token_id)
        except TokenNotFound as e:
            raise PersonalityNotEscrowed("personality is not yet transferred") from e
        if custodian != self.address:
            raise PersonalityNotEscrowed("personality is not yet transferred")

        if self.store.find_by_personality(personality) is not None:
            raise PersonalityAlreadyBound("personality already linked")
        if self.store.find_by_target(target) is not None:
            raise TargetAlreadyBound("NFT is already bound")

        if collateral_value > 0:
            self._require_collateral_covered(collateral_value)

        binding = Binding(
            id=binding_id,
            personality=personality,
            target=target,
            collateral_value=collateral_value
        )
        self.store.insert(binding)
        self.emitter.emit(MINTED, by=caller, **binding_payload(binding, self.owner_of(binding_id)))
        logger.debug("Minted iNFT %d bound to %s#%d", binding_id, target.contract, target.token_id)
        return binding

    # --- Burning ---

    def burn(self, caller: str, binding_id: int, recipient: Optional[str] = None) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_BURNER)
            if self.store.get(binding_id) is None:
                raise NotBound("not bound")
            owner = self.owner_of(binding_id)
            if recipient is None:
                recipient = owner
            if not recipient:
                raise ValidationError("recipient address is not set")

            binding = self.store.remove(binding_id)
            self._token_uris.pop(binding_id, None)
            self.emitter.emit(BURNT, by=caller, recipient=recipient, **binding_payload(binding, owner))

            if binding.collateral_value > 0:
                self.collateral_token.transfer(self.address, recipient, binding.collateral_value)
            self.directory.non_fungible(binding.personality.contract).transfer_from(
                self.address,
                self.address,
                recipient,
                binding.personality.token_id
            )
            self._check_invariants()
            return binding

    # --- Collateral adjustment ---

    def increase_collateral(self, caller: str, binding_id: int, delta: int) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_EDITOR)
            if delta <= 0:
                raise ValidationError("delta must be positive")
            binding = self.store.get(binding_id)
            if binding is None:
                raise NotBound("not bound")

            new_value = validate_collateral_value(binding.collateral_value + delta)
            self._require_collateral_covered(delta)

            updated = self.store.update_collateral(binding_id, new_value)
            self.emitter.emit(
                COLLATERAL_UPDATED,
                by=caller,
                owner=self.owner_of(binding_id),
                binding_id=binding_id,
                old_value=binding.collateral_value,
                new_value=new_value
            )
            self._check_invariants()
            return updated

    def decrease_collateral(self, caller: str, binding_id: int, delta: int, recipient: str) -> Binding:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_EDITOR)
            if delta <= 0:
                raise ValidationError("delta must be positive")
            if not recipient:
                raise ValidationError("recipient address is not set")
            binding = self.store.get(binding_id)
            if binding is None:
                raise NotBound("not bound")
            if binding.collateral_value < delta:
                raise InsufficientCollateral("collateral value too low")

            new_value = binding.collateral_value - delta
            updated = self.store.update_collateral(binding_id, new_value)
            self.emitter.emit(
                COLLATERAL_UPDATED,
                by=caller,
                owner=self.owner_of(binding_id),
                binding_id=binding_id,
                old_value=binding.collateral_value,
                new_value=new_value,
                recipient=recipient
            )

            self.collateral_token.transfer(self.address, recipient, delta)
            self._check_invariants()
            return updated

    # --- Metadata ---

    def set_base_uri(self, caller: str, uri: str) -> None:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_URI_MANAGER)
            old_uri, self._base_uri = self._base_uri, uri
            self.emitter.emit(BASE_URI_UPDATED, by=caller, old_uri=old_uri, new_uri=uri)

    def set_token_uri(self, caller: str, binding_id: int, uri: str) -> None:
        with self._guard, self.coordinator.atomic():
            self._require_role(caller, ROLE_URI_MANAGER)
            if not self.exists(binding_id):
                raise NotBound("iNFT doesn't exist")
            old_uri = self._token_uris.get(binding_id, "")
            self._token_uris[binding_id] = uri
            self.emitter.emit(
                TOKEN_URI_UPDATED,
                by=caller,
                binding_id=binding_id,
                old_uri=old_uri,
                new_uri=uri
            )

    # --- Invariants ---

    def verify_invariants(self, strict_balance: bool = True) -> None:
        """
        Raises EscrowInvariantViolation unless:
          - no personality and no target is referenced by two bindings,
          - every bound personality is held by the registry,
          - the sum of collateral values equals the tracked counter,
          - the registry's token balance covers the counter.

        Tokens pushed ahead of a direct mint leave a surplus, so the balance
        is allowed to exceed the counter but never to fall short of it.
        """
        bindings = self.store.list_all()

        personalities = Counter(b.personality for b in bindings)
        duplicated = [p for p, c in personalities.items() if c > 1]
        if duplicated:
            raise EscrowInvariantViolation(f"personality bound more than once: {duplicated[0]}")

        targets = Counter(b.target for b in bindings)
        duplicated = [t for t, c in targets.items() if c > 1]
        if duplicated:
            raise EscrowInvariantViolation(f"target bound more than once: {duplicated[0]}")

        for binding in bindings:
            if not self._holds_personality(binding.personality):
                raise EscrowInvariantViolation(f"personality not held in escrow: {binding.personality}")

        counter = self.store.total_collateral()
        collateral_sum = sum(b.collateral_value for b in bindings)
        if collateral_sum != counter:
            raise EscrowInvariantViolation(
                f"collateral sum {collateral_sum} does not match counter {counter}"
            )

        if strict_balance:
            balance = self.collateral_token.balance_of(self.address)
            if balance < counter:
                raise EscrowInvariantViolation(
                    f"registry balance {balance} does not cover collateral {counter}"
                )

        if self.store.count() != len(bindings):
            raise EscrowInvariantViolation(
                f"total supply {self.store.count()} does not match {len(bindings)} records"
            )

    def _check_invariants(self) -> None:
        if self.profile.enforce_invariants:
            self.verify_invariants()

    # --- Guards ---

    def _require_role(self, caller: str, role: int) -> None:
        if not self.gate.caller_has_role(caller, role):
            raise AccessDenied("access denied")

    def _holds_personality(self, personality: AssetRef) -> bool:
        if not self.directory.supports(personality.contract, NON_FUNGIBLE_INTERFACE):
            return False
        try:
            return self.directory.non_fungible(personality.contract).owner_of(personality.token_id) == self.address
        except TokenNotFound:
            return False

    def _require_collateral_covered(self, delta: int) -> None:
        balance = self.collateral_token.balance_of(self.address)
        if balance < self.store.total_collateral() + delta:
            raise CollateralNotTransferred("ALI tokens not yet transferred")

    # --- Transactional ---

    def savepoint(self):
        return self._base_uri, dict(self._token_uris)

    def rollback(self, savepoint) -> None:
        self._base_uri, token_uris = savepoint
        self._token_uris = dict(token_uris)

    def release(self, savepoint) -> None:
        pass
