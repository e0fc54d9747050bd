# src/stevi/repositories/organization_repository.py

"""
Organization data access layer.
"""

from __future__ import annotations
from typing import Dict, List
from sqlalchemy import func
from sqlalchemy.orm import Session

from stevi.models.inventory import InventoryTransaction
from stevi.models.organization import Organization
from stevi.models.organization_person import OrganizationPerson
from stevi.models.profile import Profile
from stevi.models.profile_invite import ProfileInvite


class OrganizationRepository:
    """
    Data access methods for Organization model.
    """

    @staticmethod
    def get_by_id(db: Session, organization_id: int) -> Organization | None:
        return db.query(Organization).filter(Organization.id == organization_id).first()

    @staticmethod
    def find_by_name(db: Session, name: str, exclude_id: int | None = None) -> Organization | None:
        """Case-insensitive name lookup, optionally ignoring one organization."""
        query = db.query(Organization).filter(func.lower(Organization.name) == name.strip().lower())
        if exclude_id is not None:
            query = query.filter(Organization.id != exclude_id)
        return query.first()

    @staticmethod
    def list_all(db: Session, *, offset: int = 0, limit: int = 50) -> List[Organization]:
        return (
            db.query(Organization)
            .order_by(Organization.name)
            .offset(offset)
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_dependents(db: Session, organization_id: int) -> Dict[str, int]:
        """
        Count rows that must be gone before an organization can be deleted.

        Returns:
            {"members": n, "invites": n, "people": n, "provider_ledger": n}
        """
        return {
            "members": db.query(func.count(Profile.id))
            .filter(Profile.organization_id == organization_id)
            .scalar(),
            "invites": db.query(func.count(ProfileInvite.id))
            .filter(ProfileInvite.organization_id == organization_id)
            .scalar(),
            "people": db.query(func.count(OrganizationPerson.id))
            .filter(OrganizationPerson.organization_id == organization_id)
            .scalar(),
            "provider_ledger": db.query(func.count(InventoryTransaction.id))
            .filter(InventoryTransaction.provider_org_id == organization_id)
            .scalar(),
        }
