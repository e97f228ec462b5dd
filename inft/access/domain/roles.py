from typing import Final

# Access manager assigns roles to users and enables/disables features of the component
ROLE_ACCESS_MANAGER: Final[int] = 1 << 255

# Bitmask representing all the possible permissions (super admin role)
FULL_PRIVILEGES_MASK: Final[int] = (1 << 256) - 1

# --- Binding registry ---

# Minter creates (mints) bindings, including through the orchestrator
ROLE_MINTER: Final[int] = 0x0001_0000

# Burner destroys (burns) bindings
ROLE_BURNER: Final[int] = 0x0002_0000

# Editor increases / decreases the collateral of existing bindings
ROLE_EDITOR: Final[int] = 0x0004_0000

# URI manager sets the base URI and per-binding token URIs
ROLE_URI_MANAGER: Final[int] = 0x0010_0000

# --- Linking orchestrator ---

FEATURE_LINKING: Final[int] = 0x0000_0001
FEATURE_UNLINKING: Final[int] = 0x0000_0002

# Link to any target contract regardless of its whitelist entry
FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_LINKING: Final[int] = 0x0000_0004

FEATURE_DEPOSITS: Final[int] = 0x0000_0008
FEATURE_WITHDRAWALS: Final[int] = 0x0000_0010

# Unlink from any target contract regardless of its whitelist entry
FEATURE_ALLOW_ANY_NFT_CONTRACT_FOR_UNLINKING: Final[int] = 0x0000_0040

ROLE_LINK_PRICE_MANAGER: Final[int] = 0x0001_0000
ROLE_NEXT_ID_MANAGER: Final[int] = 0x0002_0000
ROLE_WHITELIST_MANAGER: Final[int] = 0x0004_0000


def not_roles(*roles: int) -> int:
    """Negates the union of the given roles within the 256-bit permission space."""
    combined = 0
    for role in roles:
        combined |= role
    return FULL_PRIVILEGES_MASK ^ combined
