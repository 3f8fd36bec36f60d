"""
JSON file availability store.

Both maps and the orders live in a single document:

    {
        "productAvailabilityDB": {"p1": true, ...},
        "flavorAvailabilityDB": {"suco_laranja": false, ...},
        "orders": {"BEB12345678": {...}},
        "lastUpdated": "2024-01-01T12:00:00+00:00"
    }

The key names match the data.json written by earlier releases of the server,
so an existing file is picked up as-is. Every write rewrites the document to a
temporary file in the same directory and renames it over the original, so a
crash mid-write never leaves a truncated file behind.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .base import AvailabilityKind, AvailabilityStore, StoreConnectionError, StoreError

logger = logging.getLogger(__name__)

DOCUMENT_KEYS = {
    AvailabilityKind.PRODUCTS: "productAvailabilityDB",
    AvailabilityKind.FLAVORS: "flavorAvailabilityDB",
}


def _empty_document() -> Dict[str, Any]:
    return {
        "productAvailabilityDB": {},
        "flavorAvailabilityDB": {},
        "orders": {},
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }


class JsonFileAvailabilityStore(AvailabilityStore):
    """Store backed by one JSON document on the local filesystem."""

    backend_name = "file-system"

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        self._lock = threading.Lock()

    def connect(self) -> None:
        with self._lock:
            if not os.path.exists(self.path):
                logger.info("Data file %s not found, creating a new one", self.path)
                self._write(_empty_document())
                return
            document = self._read()
        logger.info(
            "Data file loaded: %d products, %d flavors",
            len(document.get("productAvailabilityDB") or {}),
            len(document.get("flavorAvailabilityDB") or {}),
        )

    def ping(self) -> None:
        directory = os.path.dirname(self.path)
        if not os.access(directory, os.W_OK):
            raise StoreConnectionError(f"Data directory {directory} is not writable")
        if not os.path.isfile(self.path):
            raise StoreConnectionError(f"Data file {self.path} is missing")

    def load_all(self, kind: AvailabilityKind) -> Dict[str, bool]:
        with self._lock:
            document = self._read()
        return dict(document.get(DOCUMENT_KEYS[kind]) or {})

    def save_bulk(self, kind, patch, updated_by=None) -> None:
        with self._lock:
            document = self._read()
            current = document.get(DOCUMENT_KEYS[kind]) or {}
            current.update(patch)
            document[DOCUMENT_KEYS[kind]] = current
            document["lastUpdated"] = datetime.now(timezone.utc).isoformat()
            self._write(document)
        logger.debug("Saved %d %s entries to %s", len(patch), kind.value, self.path)

    def clear(self, kind: AvailabilityKind) -> None:
        with self._lock:
            document = self._read()
            document[DOCUMENT_KEYS[kind]] = {}
            document["lastUpdated"] = datetime.now(timezone.utc).isoformat()
            self._write(document)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            document = self._read()
        return {
            "productAvailabilityDB": document.get("productAvailabilityDB") or {},
            "flavorAvailabilityDB": document.get("flavorAvailabilityDB") or {},
            "lastUpdated": document.get("lastUpdated"),
        }

    def save_order(self, order: Mapping[str, Any]) -> None:
        with self._lock:
            document = self._read()
            orders = document.get("orders") or {}
            orders[order["orderId"]] = dict(order)
            document["orders"] = orders
            self._write(document)

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._read()
        return (document.get("orders") or {}).get(order_id)

    # -------------------------------------------------------------------------
    # File helpers (callers hold self._lock)
    # -------------------------------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError as e:
            raise StoreConnectionError(f"Data file {self.path} is missing") from e
        except OSError as e:
            raise StoreConnectionError(f"Cannot read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StoreError(f"Data file {self.path} is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise StoreError(f"Data file {self.path} does not hold a JSON object")
        return document

    def _write(self, document: Dict[str, Any]) -> None:
        directory = os.path.dirname(self.path)
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".data-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StoreConnectionError(f"Cannot write {self.path}: {e}") from e
