"""
Availability store contract.

Every backend (in-memory, JSON file, SQL database) implements the same
blocking interface. Calls are made from worker threads by the connection
supervisor, never directly from request handlers, so implementations must be
safe to call from a thread other than the event loop's.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class AvailabilityKind(str, Enum):
    """Which availability map an operation targets."""

    PRODUCTS = "products"
    FLAVORS = "flavors"


class StoreError(Exception):
    """Raised when a store operation fails for a reason other than connectivity."""


class StoreConnectionError(StoreError):
    """Raised when the backing store cannot be reached."""


class StoreTimeoutError(StoreConnectionError):
    """Raised when a store operation exceeds its timeout."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"Store operation {operation} timed out after {timeout:.1f}s")


class AvailabilityStore(ABC):
    """Durable persistence for the product and flavor availability maps."""

    #: Short backend name reported by the health endpoint
    backend_name = "abstract"

    @abstractmethod
    def connect(self) -> None:
        """Open the underlying connection, creating any missing structures."""

    def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""

    @abstractmethod
    def ping(self) -> None:
        """Lightweight round-trip used by the liveness probe."""

    @abstractmethod
    def load_all(self, kind: AvailabilityKind) -> Dict[str, bool]:
        """Return the full persisted map for ``kind``."""

    @abstractmethod
    def save_bulk(
        self,
        kind: AvailabilityKind,
        patch: Mapping[str, bool],
        updated_by: Optional[str] = None,
    ) -> None:
        """Merge ``patch`` into the persisted map for ``kind`` in one write."""

    @abstractmethod
    def clear(self, kind: AvailabilityKind) -> None:
        """Remove every entry of the persisted map for ``kind``."""

    @abstractmethod
    def snapshot(self) -> Dict[str, Any]:
        """Return both persisted maps and the last update time (used for backups)."""

    @abstractmethod
    def save_order(self, order: Mapping[str, Any]) -> None:
        """Insert or replace an order document keyed by its ``orderId``."""

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored order document, or None."""
