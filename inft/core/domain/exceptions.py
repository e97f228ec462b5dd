class ProtocolError(Exception):
    """Base class for every error raised by the binding protocol."""
    pass


# --- Validation ---

class ValidationError(ProtocolError):
    """Raised for zero / out-of-range ids, amounts or addresses."""
    pass


# --- State conflicts ---

class StateConflict(ProtocolError):
    pass


class AlreadyExists(StateConflict):
    pass


class AlreadyBound(StateConflict):
    pass


class PersonalityAlreadyBound(AlreadyBound):
    pass


class TargetAlreadyBound(AlreadyBound):
    pass


class NotBound(StateConflict):
    pass


class PersonalityNotEscrowed(StateConflict):
    pass


class CollateralNotTransferred(StateConflict):
    """Raised when the registry balance does not cover the collateral being recorded."""
    pass


# --- Authorization ---

class AuthorizationError(ProtocolError):
    pass


class AccessDenied(AuthorizationError):
    pass


class NotOwner(AuthorizationError):
    pass


# --- Policy ---

class PolicyViolation(ProtocolError):
    pass


class NotWhitelisted(PolicyViolation):
    pass


class NotWhitelistedForLinking(NotWhitelisted):
    pass


class NotWhitelistedForUnlinking(NotWhitelisted):
    pass


class InsufficientCollateral(PolicyViolation):
    pass


class CollateralFloorViolation(PolicyViolation):
    """Raised when a withdrawal would leave a binding below the live link price."""
    pass


class InvalidPricing(PolicyViolation):
    pass


class FeatureDisabled(PolicyViolation):
    pass


# --- Collaborator failures ---

class CollaboratorFailure(ProtocolError):
    pass


class NotNonFungible(CollaboratorFailure):
    pass


class NotFungible(CollaboratorFailure):
    pass


class InsufficientBalance(CollaboratorFailure):
    pass


class InsufficientAllowance(CollaboratorFailure):
    pass


class TokenNotFound(CollaboratorFailure):
    pass


class TransferNotAuthorized(CollaboratorFailure):
    pass


# --- Runtime safety ---

class ReentrancyError(ProtocolError):
    """Raised when a guarded entry point is re-entered before the outer call finished."""
    pass


class EscrowInvariantViolation(ProtocolError):
    """Raised when a critical invariant is violated in fail-fast mode."""
    pass
