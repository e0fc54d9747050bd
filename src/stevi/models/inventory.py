"""
Inventory models.

Stock on hand is never stored: it is the sum of `qty` over
InventoryTransaction rows for an item/location pair. Transactions are
append-only; receive, transfer and adjust each add rows.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float, Date, ForeignKey, Index
)

from stevi.db.database import Base
from stevi.models.base_model import uuid_pk, timestamp_created
from stevi.models.mixins import AuditMixin


class InventoryItem(Base, AuditMixin):
    __tablename__ = "inventory_items"

    id = uuid_pk()
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False)
    unit_type = Column(String(50), nullable=True)
    supplier = Column(String(255), nullable=True)
    minimum_threshold = Column(Float, nullable=True)
    cost_per_unit = Column(Float, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, name={self.name})>"


class InventoryLocation(Base, AuditMixin):
    __tablename__ = "inventory_locations"

    id = uuid_pk()
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    type = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<InventoryLocation(id={self.id}, code={self.code})>"


class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"

    id = uuid_pk()
    item_id = Column(String(36), ForeignKey("inventory_items.id"), nullable=False, index=True)
    location_id = Column(String(36), ForeignKey("inventory_locations.id"), nullable=False, index=True)

    # Signed: receipts and transfer_in are positive, transfer_out negative
    qty = Column(Float, nullable=False)
    ref_type = Column(String(50), nullable=False)
    # Pairs transfer_out/transfer_in rows, groups bulk receipts
    batch_id = Column(String(36), nullable=True, index=True)

    unit_cost = Column(Float, nullable=True)
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    source_type = Column(String(50), nullable=True)
    provider_org_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    lot_number = Column(String(100), nullable=True)
    expiry_date = Column(Date, nullable=True)

    created_by = Column(String(36), nullable=True)
    created_at = timestamp_created()

    __table_args__ = (
        Index("ix_inventory_transactions_item_location", "item_id", "location_id"),
    )
