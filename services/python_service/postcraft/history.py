"""Client-side design history.

The service itself keeps no history: /generate is stateless. This helper is
for callers that keep the capped recent-designs list themselves, such as the
browser front end or a script driving the service.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Callable, List, MutableMapping, Optional

from .models import GenerationResult, HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_KEY = "postcraft.history"
MAX_ENTRIES = 10


def _now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryStore:
    """Most recent successful designs, kept as one JSON blob under a fixed key.

    ``storage`` is any string-to-string mapping (browser local storage on the
    client, a plain dict in tests). Newest entries come first and only the
    latest ten are kept.
    """

    def __init__(self, storage: MutableMapping[str, str], clock: Optional[Callable[[], datetime]] = None):
        self.storage = storage
        self.clock = clock or _now

    def entries(self) -> List[HistoryEntry]:
        raw = self.storage.get(HISTORY_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            return [HistoryEntry.model_validate(item) for item in items]
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable history blob: {e}")
            return []

    def add(self, result: GenerationResult) -> Optional[HistoryEntry]:
        if not result.success:
            return None
        now = self.clock()
        entry = HistoryEntry(
            **result.model_dump(),
            id=str(int(now.timestamp() * 1000)),
            timestamp=now.isoformat(),
        )
        kept = [entry] + self.entries()
        self.storage[HISTORY_KEY] = json.dumps([e.to_wire() for e in kept[:MAX_ENTRIES]])
        return entry

    def clear(self) -> None:
        self.storage.pop(HISTORY_KEY, None)
