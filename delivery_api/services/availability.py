"""
Availability Service for the BebCom Delivery API
=================================================

Public operations over the product and flavor availability maps, consumed by
the HTTP routes. This is where the degraded-mode policy lives.

Key Operations:
---------------
- get_availability: Read a map from the sync cache (never fails)
- update_availability: Validate, persist and apply a bulk patch
- reset_all: Clear both maps in the store and the cache
- reload: Reload both maps from the store (connection supervisor hook)
- backup: Fetch the persisted snapshot

Degraded Mode:
--------------
Reads are always answered from the SyncCache. When the connection supervisor
reports the store as disconnected the answer is flagged ``degraded`` (the
data is the best known value but may be stale).

Writes fail closed. While disconnected an update is refused with
STORE_UNAVAILABLE and the cache is left alone, so the cache never holds a
value the store has not accepted. When the store write fails (error or
timeout) the result is STORE_PERSIST_ERROR and the cache is left alone too:
from the caller's point of view persisting and applying are one unit.

Concurrency:
------------
Updates to the same kind are serialized by a per-kind asyncio.Lock, so two
concurrent patches never interleave at the key level. reset_all takes both
locks in AvailabilityKind order.

Results:
--------
No operation raises past this module. Each returns a ServiceResult with a
success flag, an applied count, and on failure an ErrorCode and message that
the routes translate into an HTTP status.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..connection import ConnectionSupervisor
from ..storage.base import AvailabilityKind, StoreError
from ..sync_cache import SyncCache
from .audit import AuditLog

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    STORE_PERSIST_ERROR = "STORE_PERSIST_ERROR"


@dataclass(frozen=True)
class AvailabilitySnapshot:
    """A map as served to readers."""
    kind: AvailabilityKind
    data: Dict[str, bool]
    degraded: bool
    last_updated: Optional[datetime] = None


@dataclass(frozen=True)
class ServiceResult:
    """Outcome of a write operation."""
    success: bool
    count: int = 0
    error: Optional[str] = None
    code: Optional[ErrorCode] = None
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, count: int = 0, data: Optional[Dict[str, Any]] = None) -> "ServiceResult":
        return cls(success=True, count=count, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, error: str) -> "ServiceResult":
        return cls(success=False, error=error, code=code)


def validate_patch(patch: Any) -> Optional[str]:
    """
    Check that ``patch`` is a non-empty mapping of non-empty string keys to bools.

    Returns:
        None if valid, otherwise a message describing the first problem found.
    """
    if not isinstance(patch, Mapping):
        return "Patch must be an object mapping item keys to booleans"
    if not patch:
        return "Patch must contain at least one entry"
    for key, value in patch.items():
        if not isinstance(key, str) or not key.strip():
            return f"Invalid item key: {key!r}"
        # bool is checked exactly: 1/0 are not accepted as availability flags
        if type(value) is not bool:
            return f"Availability for {key!r} must be true or false"
    return None


class AvailabilityService:
    """
    Orchestrates reads and writes of the availability maps.

    Args:
        cache: The SyncCache served to readers.
        supervisor: Connection supervisor owning the availability store.
        audit: Append-only audit log for admin writes.
        default_actor: Actor recorded when a write does not name one.
    """

    def __init__(
        self,
        cache: SyncCache,
        supervisor: ConnectionSupervisor,
        audit: Optional[AuditLog] = None,
        default_actor: str = "Admin",
    ):
        self.cache = cache
        self.supervisor = supervisor
        self.store = supervisor.store
        self.audit = audit if audit is not None else AuditLog()
        self.default_actor = default_actor
        self._locks = {kind: asyncio.Lock() for kind in AvailabilityKind}

    @property
    def connected(self) -> bool:
        return self.supervisor.connection_state().connected

    # =========================================================================
    # Reads
    # =========================================================================

    def get_availability(self, kind: Union[AvailabilityKind, str]) -> AvailabilitySnapshot:
        kind = AvailabilityKind(kind)
        return AvailabilitySnapshot(
            kind=kind,
            data=self.cache.get(kind),
            degraded=not self.connected,
            last_updated=self.cache.last_updated(kind),
        )

    # =========================================================================
    # Writes
    # =========================================================================

    async def update_availability(
        self,
        kind: Union[AvailabilityKind, str],
        patch: Any,
        actor: Optional[str] = None,
    ) -> ServiceResult:
        """Persist ``patch`` for ``kind`` and merge it into the cache."""
        try:
            kind = AvailabilityKind(kind)
        except ValueError:
            return ServiceResult.fail(ErrorCode.INVALID_INPUT, f"Unknown availability kind: {kind!r}")

        error = validate_patch(patch)
        if error:
            return ServiceResult.fail(ErrorCode.INVALID_INPUT, error)

        patch = dict(patch)
        actor = actor or self.default_actor

        async with self._locks[kind]:
            if not self.connected:
                logger.warning("Refusing %s update from %r: store unavailable", kind.value, actor)
                return ServiceResult.fail(
                    ErrorCode.STORE_UNAVAILABLE,
                    "Availability store is unavailable; update was not applied",
                )

            try:
                await self.supervisor.execute(self.store.save_bulk, kind, patch, updated_by=actor)
            except StoreError as e:
                logger.error("Failed to persist %d %s entries: %s", len(patch), kind.value, e)
                return ServiceResult.fail(ErrorCode.STORE_PERSIST_ERROR, f"Failed to save {kind.value}: {e}")
            except Exception as e:
                logger.exception("Unexpected error persisting %s update", kind.value)
                return ServiceResult.fail(ErrorCode.STORE_PERSIST_ERROR, f"Failed to save {kind.value}: {e}")

            count = self.cache.apply_bulk(kind, patch)

        self.audit.record("update_availability", actor, count, kind.value)
        return ServiceResult.ok(count)

    async def reset_all(self, actor: Optional[str] = None) -> ServiceResult:
        """
        Clear both maps in the store and the cache.

        Both kinds are cleared or neither is: the persisted maps are read
        first, and if a later clear fails the kinds already cleared are
        written back before the error is returned.
        """
        actor = actor or self.default_actor

        async with self._locks[AvailabilityKind.PRODUCTS], self._locks[AvailabilityKind.FLAVORS]:
            if not self.connected:
                logger.warning("Refusing reset from %r: store unavailable", actor)
                return ServiceResult.fail(
                    ErrorCode.STORE_UNAVAILABLE,
                    "Availability store is unavailable; reset was not applied",
                )

            try:
                previous = {kind: await self.supervisor.execute(self.store.load_all, kind) for kind in AvailabilityKind}
            except Exception as e:
                logger.error("Failed to read availability before reset: %s", e)
                return ServiceResult.fail(ErrorCode.STORE_PERSIST_ERROR, f"Failed to reset: {e}")

            cleared = []
            for kind in AvailabilityKind:
                try:
                    await self.supervisor.execute(self.store.clear, kind)
                except Exception as e:
                    logger.error("Failed to clear %s: %s", kind.value, e)
                    await self._restore(cleared, previous, actor)
                    return ServiceResult.fail(ErrorCode.STORE_PERSIST_ERROR, f"Failed to reset {kind.value}: {e}")
                cleared.append(kind)

            for kind in cleared:
                self.cache.load(kind, {})

        count = sum(len(data) for data in previous.values())
        self.audit.record("reset_all", actor, count)
        return ServiceResult.ok(count)

    async def _restore(self, kinds, previous: Dict[AvailabilityKind, Dict[str, bool]], actor: str) -> None:
        """Write back maps cleared by a reset that could not finish."""
        for kind in kinds:
            if not previous[kind]:
                continue
            try:
                await self.supervisor.execute(self.store.save_bulk, kind, previous[kind], updated_by=actor)
            except Exception as e:
                # The cache is reloaded from the store on the next connect
                logger.error("Failed to restore %s after partial reset: %s", kind.value, e)
                self.supervisor.mark_disconnected(f"Partial reset of {kind.value} could not be undone")

    # =========================================================================
    # Store synchronisation
    # =========================================================================

    async def reload(self) -> None:
        """
        Replace both cache maps with the store's content.

        Installed as the supervisor's on_connected hook. Errors propagate so
        the supervisor counts the connect attempt as failed.
        """
        for kind in AvailabilityKind:
            async with self._locks[kind]:
                data = await self.supervisor.call(self.store.load_all, kind)
                self.cache.load(kind, data)
        sizes = self.cache.sizes()
        logger.info(
            "Availability cache synced from store: %d products, %d flavors",
            sizes[AvailabilityKind.PRODUCTS.value],
            sizes[AvailabilityKind.FLAVORS.value],
        )

    async def backup(self) -> ServiceResult:
        """Return the persisted snapshot of both maps."""
        if not self.connected:
            return ServiceResult.fail(ErrorCode.STORE_UNAVAILABLE, "Availability store is unavailable")
        try:
            snapshot = await self.supervisor.execute(self.store.snapshot)
        except Exception as e:
            logger.error("Failed to create backup: %s", e)
            return ServiceResult.fail(ErrorCode.STORE_PERSIST_ERROR, f"Failed to create backup: {e}")

        count = len(snapshot.get("productAvailabilityDB") or {}) + len(snapshot.get("flavorAvailabilityDB") or {})
        return ServiceResult.ok(count, data=snapshot)
