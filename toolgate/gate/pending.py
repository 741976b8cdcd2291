"""PendingCallStore - durable set of tool calls awaiting a human decision."""

import logging
from typing import Dict, List, Optional

from ..storage import JsonFileStore
from ..tools.models import ToolCall, ToolCallState

logger = logging.getLogger(__name__)


class PendingCallStore(JsonFileStore):
    """Holds AWAITING_CONFIRMATION calls across turns and restarts.

    Calls are kept in the order they were parked.
    """

    records_key = "calls"

    def __init__(self, store_path: Optional[str] = None):
        super().__init__(store_path)
        self._calls: Dict[str, ToolCall] = {}

    async def load(self) -> None:
        """Load parked calls from disk. Entries not awaiting confirmation are dropped."""
        self._calls = {}
        for record in self._read_records():
            try:
                call = ToolCall.from_dict(record)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid pending call entry: {e}")
                continue
            if call.state != ToolCallState.AWAITING_CONFIRMATION:
                continue
            self._calls[call.id] = call
        if self.store_path is not None:
            logger.info(f"Loaded {len(self._calls)} pending tool calls from {self.store_path}")

    async def save(self) -> None:
        self._write_records([call.to_dict() for call in self._calls.values()])

    def add(self, call: ToolCall) -> None:
        self._calls[call.id] = call

    def get(self, call_id: str) -> Optional[ToolCall]:
        return self._calls.get(call_id)

    def remove(self, call_id: str) -> bool:
        return self._calls.pop(call_id, None) is not None

    def list(self) -> List[ToolCall]:
        return list(self._calls.values())

    def __len__(self) -> int:
        return len(self._calls)
