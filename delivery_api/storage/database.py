"""
SQL availability store.

Uses one ``availability_records`` row per (kind, key) and an ``orders`` table.
Tables are created on connect. Connectivity problems reported by SQLAlchemy
(OperationalError, InterfaceError) surface as StoreConnectionError so the
connection supervisor flips to disconnected; every other database error is a
plain StoreError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Mapping, Optional

from sqlalchemy import func, text
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import create_db_engine, create_session_factory
from ..models import AvailabilityRecord, Base, OrderRecord
from .base import AvailabilityKind, AvailabilityStore, StoreConnectionError, StoreError

logger = logging.getLogger(__name__)


class SqlAvailabilityStore(AvailabilityStore):
    """Store backed by a SQL database through SQLAlchemy."""

    backend_name = "database"

    def __init__(self, database_url: str, connect_timeout: float = None):
        self.database_url = database_url
        self.connect_timeout = connect_timeout
        self._engine = None
        self._session_factory = None

    def connect(self) -> None:
        if self._engine is None:
            self._engine = create_db_engine(self.database_url, self.connect_timeout)
            self._session_factory = create_session_factory(self._engine)
        try:
            Base.metadata.create_all(bind=self._engine)
        except (OperationalError, InterfaceError) as e:
            raise StoreConnectionError(f"Database unreachable: {e}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Could not prepare database tables: {e}") from e
        logger.info("Connected to database (%s)", self._engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))

    def load_all(self, kind: AvailabilityKind) -> Dict[str, bool]:
        with self._session() as db:
            records = db.query(AvailabilityRecord).filter(AvailabilityRecord.kind == kind.value).all()
            return {record.key: record.is_available for record in records}

    def save_bulk(self, kind, patch, updated_by=None) -> None:
        now = datetime.now(timezone.utc)
        with self._session() as db:
            existing = {
                record.key: record
                for record in db.query(AvailabilityRecord).filter(
                    AvailabilityRecord.kind == kind.value,
                    AvailabilityRecord.key.in_(list(patch.keys())),
                )
            }
            for key, is_available in patch.items():
                record = existing.get(key)
                if record is None:
                    db.add(AvailabilityRecord(
                        kind=kind.value,
                        key=key,
                        is_available=is_available,
                        last_updated=now,
                        updated_by=updated_by,
                    ))
                else:
                    record.is_available = is_available
                    record.last_updated = now
                    record.updated_by = updated_by
            db.commit()

    def clear(self, kind: AvailabilityKind) -> None:
        with self._session() as db:
            db.query(AvailabilityRecord).filter(AvailabilityRecord.kind == kind.value).delete()
            db.commit()

    def snapshot(self) -> Dict[str, Any]:
        with self._session() as db:
            rows = db.query(
                AvailabilityRecord.kind,
                AvailabilityRecord.key,
                AvailabilityRecord.is_available,
            ).all()
            last_updated = db.query(func.max(AvailabilityRecord.last_updated)).scalar()

        products = {key: flag for kind, key, flag in rows if kind == AvailabilityKind.PRODUCTS.value}
        flavors = {key: flag for kind, key, flag in rows if kind == AvailabilityKind.FLAVORS.value}
        return {
            "productAvailabilityDB": products,
            "flavorAvailabilityDB": flavors,
            "lastUpdated": last_updated.isoformat() if last_updated else None,
        }

    def save_order(self, order: Mapping[str, Any]) -> None:
        with self._session() as db:
            record = db.query(OrderRecord).filter(OrderRecord.order_id == order["orderId"]).one_or_none()
            if record is None:
                record = OrderRecord(order_id=order["orderId"])
                db.add(record)
            record.status = order.get("status", "pending_payment")
            record.paid = bool(order.get("paid", False))
            record.customer = order.get("customer")
            record.items = order.get("items", [])
            record.total_amount = order.get("totalAmount", 0.0)
            record.delivery_fee = order.get("deliveryFee", 0.0)
            record.created_at = order.get("createdAt") or datetime.now(timezone.utc).isoformat()
            record.paid_at = order.get("paidAt")
            db.commit()

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        with self._session() as db:
            record = db.query(OrderRecord).filter(OrderRecord.order_id == order_id).one_or_none()
            if record is None:
                return None
            return {
                "orderId": record.order_id,
                "customer": record.customer,
                "items": record.items or [],
                "totalAmount": record.total_amount,
                "deliveryFee": record.delivery_fee,
                "status": record.status,
                "paid": record.paid,
                "createdAt": record.created_at,
                "paidAt": record.paid_at,
            }

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        if self._session_factory is None:
            raise StoreConnectionError("Database store is not connected")

        db = self._session_factory()
        try:
            yield db
        except (OperationalError, InterfaceError) as e:
            try:
                db.rollback()
            except SQLAlchemyError:
                logger.debug("Rollback failed on a broken connection", exc_info=True)
            raise StoreConnectionError(f"Database unreachable: {e}") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Database error: {e}") from e
        finally:
            db.close()
