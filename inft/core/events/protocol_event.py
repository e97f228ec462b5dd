from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict
from uuid import UUID


@dataclass(frozen=True)
class ProtocolEvent:
    """
    Immutable record of a committed protocol state change.
    `by` is the address that initiated the operation.
    """
    id: UUID
    timestamp: datetime
    event_type: str  # e.g. "MINTED", "LINKED", "WHITELIST_CHANGED"
    by: str
    payload: Dict[str, Any] = field(default_factory=dict)
