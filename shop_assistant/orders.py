import logging
import threading
import time
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "phone", "address", "product", "size")

FIELD_LABELS = {
    "name": "full name",
    "phone": "phone number",
    "address": "delivery address",
    "product": "product",
    "size": "size (or your height in cm)",
}


class OrderRecord(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    product: Optional[str] = None
    size: Optional[str] = None

    def missing(self) -> List[str]:
        return [f for f in REQUIRED_FIELDS if not (getattr(self, f) or "").strip()]

    def is_complete(self) -> bool:
        return not self.missing()

    def is_started(self) -> bool:
        return any((getattr(self, f) or "").strip() for f in REQUIRED_FIELDS)


def describe_missing(record: OrderRecord) -> str:
    return ", ".join(FIELD_LABELS[f] for f in record.missing())


class SessionStore:
    """
    In-memory order records, one per conversation.

    Records expire after `ttl_seconds` without activity. The store is
    process-local; a restart drops every pending order.
    """

    def __init__(self, ttl_seconds: int = 1800, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._records: Dict[str, Tuple[OrderRecord, float]] = {}

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def _expired(self, last_seen: float, now: float) -> bool:
        return now - last_seen >= self.ttl_seconds

    def load(self, session_id: str) -> OrderRecord:
        now = self._clock()
        with self._lock:
            entry = self._records.get(session_id)
            if entry is None:
                return OrderRecord()
            record, last_seen = entry
            if self._expired(last_seen, now):
                logger.info("session %s expired, starting a new order", session_id)
                del self._records[session_id]
                return OrderRecord()
            return record.model_copy()

    def save(self, session_id: str, record: OrderRecord) -> None:
        with self._lock:
            self._records[session_id] = (record.model_copy(), self._clock())

    def clear(self, session_id: str) -> bool:
        with self._lock:
            return self._records.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [sid for sid, (_, seen) in self._records.items() if self._expired(seen, now)]
            for sid in stale:
                del self._records[sid]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
