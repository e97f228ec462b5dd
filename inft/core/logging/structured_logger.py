import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredRuntimeLogger:
    """
    Lightweight JSON-lines logger for committed protocol events.
    Large integers (256-bit ids, wei amounts) are emitted as strings.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("inft.events")

    def emit(self, event_type: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        for key, value in fields.items():
            payload[key] = str(value) if isinstance(value, int) and not isinstance(value, bool) else value
        self._logger.info(json.dumps(payload, default=str, ensure_ascii=True))
