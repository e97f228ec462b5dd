from typing import Any, Dict

from inft.binding.domain.binding import Binding

MINTED = "MINTED"
BURNT = "BURNT"
COLLATERAL_UPDATED = "COLLATERAL_UPDATED"
BASE_URI_UPDATED = "BASE_URI_UPDATED"
TOKEN_URI_UPDATED = "TOKEN_URI_UPDATED"


def binding_payload(binding: Binding, owner: str) -> Dict[str, Any]:
    return {
        "owner": owner,
        "binding_id": binding.id,
        "collateral_value": binding.collateral_value,
        "personality_contract": binding.personality.contract,
        "personality_id": binding.personality.token_id,
        "target_contract": binding.target.contract,
        "target_id": binding.target.token_id,
    }
