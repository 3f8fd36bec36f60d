"""
Append-only audit log of admin writes.

Entries are kept in memory (bounded by AUDIT_LOG_MAX_ENTRIES, oldest dropped
first) and mirrored to the application log at INFO level so they survive in
the platform's log retention even after a restart.
"""

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    action: str
    actor: str
    count: int
    kind: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class AuditLog:
    def __init__(self, max_entries: int = 500):
        self._entries = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def record(self, action: str, actor: str, count: int, kind: Optional[str] = None) -> AuditEntry:
        entry = AuditEntry(action=action, actor=actor, count=count, kind=kind)
        with self._lock:
            self._entries.append(entry)
        logger.info("Audit: %s by %r (%s, %d entries)", action, actor, kind or "all", count)
        return entry

    def entries(self, limit: Optional[int] = None) -> List[AuditEntry]:
        """Return entries newest first."""
        with self._lock:
            items = list(self._entries)
        items.reverse()
        return items[:limit] if limit is not None else items

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
