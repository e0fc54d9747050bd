"""
Profile model - the portal identity linked to an authenticated user.

A profile is created in `pending` affiliation the first time a user reaches
the service; capabilities only apply once it is `approved`.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint

from stevi.db.database import Base
from stevi.models.base_model import uuid_pk
from stevi.models.mixins import TimestampMixin


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id = uuid_pk()

    # Subject claim from the session token
    user_id = Column(String(255), nullable=False, unique=True, index=True)

    email = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    position_title = Column(String(255), nullable=True)

    organization_id = Column(
        Integer,
        ForeignKey("organizations.id"),
        nullable=True,
        index=True
    )

    # 'pending', 'approved', 'declined'
    affiliation_status = Column(String(50), nullable=False, default="pending")
    affiliation_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    affiliation_reviewed_by = Column(String(36), nullable=True)

    # Snapshot written by refresh_profile_claims
    claims = Column(JSON, nullable=True)
    claims_refreshed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Profile(id={self.id}, user_id={self.user_id}, org={self.organization_id})>"


class UserGlobalRole(Base, TimestampMixin):
    """Platform-wide role grant (e.g. 'global_admin')."""
    __tablename__ = "user_global_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    role_name = Column(String(100), nullable=False)
    granted_by = Column(String(36), nullable=True)

    __table_args__ = (
        UniqueConstraint("profile_id", "role_name", name="uq_user_global_roles_profile_role"),
    )
