# src/stevi/repositories/inventory_repository.py

"""
Inventory data access layer.

On-hand quantities are always aggregated from the transaction ledger.
"""

from __future__ import annotations
from typing import Dict, List
from sqlalchemy import func
from sqlalchemy.orm import Session

from stevi.models.inventory import InventoryItem, InventoryLocation, InventoryTransaction


class InventoryRepository:
    """
    Data access methods for inventory items, locations and the ledger.
    """

    @staticmethod
    def get_item(db: Session, item_id: str) -> InventoryItem | None:
        return db.query(InventoryItem).filter(InventoryItem.id == item_id).first()

    @staticmethod
    def get_location(db: Session, location_id: str) -> InventoryLocation | None:
        return db.query(InventoryLocation).filter(InventoryLocation.id == location_id).first()

    @staticmethod
    def find_location_by_code(db: Session, code: str, exclude_id: str | None = None) -> InventoryLocation | None:
        query = db.query(InventoryLocation).filter(func.lower(InventoryLocation.code) == code.lower())
        if exclude_id is not None:
            query = query.filter(InventoryLocation.id != exclude_id)
        return query.first()

    @staticmethod
    def on_hand(db: Session, item_id: str, location_id: str) -> float:
        """Sum of signed ledger quantities for one item at one location."""
        total = (
            db.query(func.coalesce(func.sum(InventoryTransaction.qty), 0.0))
            .filter(
                InventoryTransaction.item_id == item_id,
                InventoryTransaction.location_id == location_id,
            )
            .scalar()
        )
        return float(total or 0.0)

    @staticmethod
    def stock_levels(db: Session) -> List[Dict]:
        """Non-zero on-hand totals grouped by item and location."""
        rows = (
            db.query(
                InventoryTransaction.item_id,
                InventoryTransaction.location_id,
                func.sum(InventoryTransaction.qty).label("on_hand"),
            )
            .group_by(InventoryTransaction.item_id, InventoryTransaction.location_id)
            .all()
        )
        return [
            {"item_id": row.item_id, "location_id": row.location_id, "on_hand": float(row.on_hand)}
            for row in rows
            if row.on_hand
        ]

    @staticmethod
    def count_item_transactions(db: Session, item_id: str) -> int:
        return (
            db.query(func.count(InventoryTransaction.id))
            .filter(InventoryTransaction.item_id == item_id)
            .scalar()
        )

    @staticmethod
    def count_location_transactions(db: Session, location_id: str) -> int:
        return (
            db.query(func.count(InventoryTransaction.id))
            .filter(InventoryTransaction.location_id == location_id)
            .scalar()
        )
