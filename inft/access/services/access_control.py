import logging
from typing import Dict, Optional

from inft.access.domain.roles import FULL_PRIVILEGES_MASK, ROLE_ACCESS_MANAGER
from inft.access.interfaces.capability_gate import CapabilityGate
from inft.core.domain.exceptions import AccessDenied, ValidationError
from inft.core.events.event_emitter import EventEmitter

logger = logging.getLogger(__name__)

ROLE_UPDATED = "ROLE_UPDATED"


class BitmaskAccessControl(CapabilityGate):
    """
    Role/feature bitmask gate guarding a single component.

    Every address maps to a 256-bit permission set. The guarded component's own
    address holds its feature set, so features and roles share one mechanism.
    An access manager can only grant or revoke the bits it holds itself.
    """

    def __init__(
            self,
            address: str,
            deployer: str,
            emitter: Optional[EventEmitter] = None
    ):
        if not address:
            raise ValidationError("component address is not set")
        if not deployer:
            raise ValidationError("deployer address is not set")
        self.address = address
        self.emitter = emitter or EventEmitter()
        self._user_roles: Dict[str, int] = {deployer: FULL_PRIVILEGES_MASK}

    # --- Reads ---

    @property
    def features(self) -> int:
        return self._user_roles.get(self.address, 0)

    def user_roles(self, operator: str) -> int:
        return self._user_roles.get(operator, 0)

    def is_feature_enabled(self, feature: int) -> bool:
        return self.is_operator_in_role(self.address, feature)

    def caller_has_role(self, caller: str, role: int) -> bool:
        return self.is_operator_in_role(caller, role)

    def is_operator_in_role(self, operator: str, required_role: int) -> bool:
        return self.user_roles(operator) & required_role == required_role

    # --- Mutations ---

    def update_features(self, caller: str, mask: int) -> int:
        return self.update_role(caller, self.address, mask)

    def update_role(self, caller: str, operator: str, role: int) -> int:
        if not self.caller_has_role(caller, ROLE_ACCESS_MANAGER):
            raise AccessDenied("access denied")
        if not operator:
            raise ValidationError("operator address is not set")
        if role < 0 or role > FULL_PRIVILEGES_MASK:
            raise ValidationError("role is out of range")

        assigned = self.evaluate_by(caller, self.user_roles(operator), role)
        self._user_roles[operator] = assigned
        logger.debug("Role of %s set to %#x by %s", operator, assigned, caller)

        self.emitter.emit(
            ROLE_UPDATED,
            by=caller,
            operator=operator,
            requested=role,
            assigned=assigned
        )
        return assigned

    def evaluate_by(self, manager: str, target: int, desired: int) -> int:
        """
        Computes the permission set a manager is able to produce from `target`.
        Bits the manager lacks are left exactly as they were.
        """
        p = self.user_roles(manager)
        target |= p & desired
        target &= FULL_PRIVILEGES_MASK ^ (p & (FULL_PRIVILEGES_MASK ^ desired))
        return target
