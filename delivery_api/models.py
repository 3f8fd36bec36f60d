from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    JSON,
    DateTime,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


# --- Availability (one record per product or flavor key) ---

class AvailabilityRecord(Base):
    """Persisted availability flag. If no record exists for a key, the key is unknown, not unavailable."""
    __tablename__ = "availability_records"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String, nullable=False, index=True)  # 'products' or 'flavors'
    key = Column(String, nullable=False)  # product id, or 'type_name' for flavors
    is_available = Column(Boolean, nullable=False, default=True)
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    updated_by = Column(String, nullable=True)

    # One record per key within a kind
    __table_args__ = (
        UniqueConstraint("kind", "key", name="uix_availability_kind_key"),
    )


# --- Orders (simulated PIX flow) ---

class OrderRecord(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, unique=True, nullable=False, index=True)  # e.g. "BEB12345678"
    status = Column(String, nullable=False, default="pending_payment", index=True)  # pending_payment/paid
    paid = Column(Boolean, nullable=False, default=False)
    customer = Column(JSON, nullable=True)
    items = Column(JSON, nullable=True)  # stores list
    total_amount = Column(Float, nullable=False, default=0.0)
    delivery_fee = Column(Float, nullable=False, default=0.0)
    created_at = Column(String, nullable=False)  # ISO timestamp as sent back to the storefront
    paid_at = Column(String, nullable=True)  # set when the payment is confirmed
