"""
Organization-scoped roles and their grants.

Each organization owns its role rows (seeded from the defaults in
stevi.auth.permissions); UserOrgRole links a profile to one of them.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, JSON, UniqueConstraint

from stevi.db.database import Base
from stevi.models.base_model import uuid_pk
from stevi.models.mixins import TimestampMixin


class OrgRole(Base, TimestampMixin):
    __tablename__ = "org_roles"

    id = uuid_pk()
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    display_name = Column(String(255), nullable=True)
    permissions = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_org_roles_org_name"),
    )

    def __repr__(self):
        return f"<OrgRole(org={self.organization_id}, name={self.name})>"


class UserOrgRole(Base, TimestampMixin):
    __tablename__ = "user_org_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    org_role_id = Column(String(36), ForeignKey("org_roles.id"), nullable=False)
    granted_by = Column(String(36), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "profile_id", "organization_id", "org_role_id",
            name="uq_user_org_roles_grant"
        ),
    )
