import copy
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .base import AvailabilityKind, AvailabilityStore


class MemoryAvailabilityStore(AvailabilityStore):
    """Process-local store. Data does not survive a restart."""

    backend_name = "memory"

    def __init__(self, initial: Optional[Mapping[AvailabilityKind, Mapping[str, bool]]] = None):
        self._lock = threading.Lock()
        self._maps: Dict[AvailabilityKind, Dict[str, bool]] = {
            kind: dict((initial or {}).get(kind, {})) for kind in AvailabilityKind
        }
        self._orders: Dict[str, Dict[str, Any]] = {}
        self._last_updated: Optional[datetime] = None

    def connect(self) -> None:
        pass

    def ping(self) -> None:
        pass

    def load_all(self, kind: AvailabilityKind) -> Dict[str, bool]:
        with self._lock:
            return dict(self._maps[kind])

    def save_bulk(self, kind, patch, updated_by=None) -> None:
        with self._lock:
            self._maps[kind].update(patch)
            self._last_updated = datetime.now(timezone.utc)

    def clear(self, kind: AvailabilityKind) -> None:
        with self._lock:
            self._maps[kind] = {}
            self._last_updated = datetime.now(timezone.utc)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "productAvailabilityDB": dict(self._maps[AvailabilityKind.PRODUCTS]),
                "flavorAvailabilityDB": dict(self._maps[AvailabilityKind.FLAVORS]),
                "lastUpdated": self._last_updated.isoformat() if self._last_updated else None,
            }

    def save_order(self, order: Mapping[str, Any]) -> None:
        with self._lock:
            self._orders[order["orderId"]] = copy.deepcopy(dict(order))

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order is not None else None
