"""
Sync Cache - In-process mirror of the availability maps.

Request handlers read availability exclusively from this cache; the backing
store is only consulted at startup, after a reconnect, and on writes. The
cache holds one map per AvailabilityKind and never expires or evicts entries:
it is keyed by catalog identifiers, not bounded by memory.

Writes go through apply_bulk(), which builds the merged map aside and swaps it
in under the lock, so a reader never sees a bulk update half applied.

Usage:
    cache = SyncCache()
    cache.load(AvailabilityKind.PRODUCTS, {"p1": True})
    cache.apply_bulk(AvailabilityKind.PRODUCTS, {"p2": False})
    cache.get(AvailabilityKind.PRODUCTS)
    # {"p1": True, "p2": False}
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

from .storage.base import AvailabilityKind

logger = logging.getLogger(__name__)


class SyncCache:
    """Authoritative in-process copy of the product and flavor availability maps."""

    def __init__(self):
        self._lock = threading.Lock()
        self._maps: Dict[AvailabilityKind, Dict[str, bool]] = {kind: {} for kind in AvailabilityKind}
        self._last_updated: Dict[AvailabilityKind, Optional[datetime]] = {kind: None for kind in AvailabilityKind}
        self._loaded: Dict[AvailabilityKind, bool] = {kind: False for kind in AvailabilityKind}

    def load(self, kind: AvailabilityKind, initial: Mapping[str, bool]) -> None:
        """Replace the map for ``kind`` wholesale."""
        replacement = dict(initial)
        with self._lock:
            self._maps[kind] = replacement
            self._last_updated[kind] = datetime.now(timezone.utc)
            self._loaded[kind] = True
        logger.debug("Loaded %d %s into cache", len(replacement), kind.value)

    def get(self, kind: AvailabilityKind) -> Dict[str, bool]:
        """Return a copy of the map for ``kind`` (empty if never loaded)."""
        with self._lock:
            return dict(self._maps[kind])

    def apply_bulk(self, kind: AvailabilityKind, patch: Mapping[str, bool]) -> int:
        """
        Merge ``patch`` into the map for ``kind``.

        Keys present in the patch overwrite existing values; keys absent from
        the patch are left untouched.

        Returns:
            Number of keys applied.
        """
        with self._lock:
            merged = dict(self._maps[kind])
            merged.update(patch)
            self._maps[kind] = merged
            self._last_updated[kind] = datetime.now(timezone.utc)
        return len(patch)

    def last_updated(self, kind: AvailabilityKind) -> Optional[datetime]:
        with self._lock:
            return self._last_updated[kind]

    def is_loaded(self, kind: AvailabilityKind) -> bool:
        with self._lock:
            return self._loaded[kind]

    def sizes(self) -> Dict[str, int]:
        with self._lock:
            return {kind.value: len(self._maps[kind]) for kind in AvailabilityKind}
