# src/stevi/repositories/__init__.py
from .organization_repository import OrganizationRepository
from .inventory_repository import InventoryRepository

__all__ = [
    "OrganizationRepository",
    "InventoryRepository",
]
