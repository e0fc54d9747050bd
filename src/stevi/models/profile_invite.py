"""
ProfileInvite model - pending offer of affiliation with an organization.

Invites are only ever created here in `pending`; acceptance, cancellation
and expiry are handled by the onboarding flow.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index

from stevi.db.database import Base
from stevi.models.base_model import uuid_pk
from stevi.models.mixins import TimestampMixin


class ProfileInvite(Base, TimestampMixin):
    __tablename__ = "profile_invites"

    id = uuid_pk()

    email = Column(String(255), nullable=False, index=True)
    display_name = Column(String(255), nullable=True)
    position_title = Column(String(255), nullable=True)
    message = Column(Text, nullable=True)

    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    affiliation_type = Column(String(50), nullable=False, default="agency_partner")

    invited_by_profile_id = Column(String(36), nullable=True)
    invited_by_user_id = Column(String(255), nullable=True)

    token = Column(String(255), nullable=False, unique=True, index=True)
    status = Column(String(50), nullable=False, default="pending")
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_profile_invites_org_status", "organization_id", "status"),
    )

    def __repr__(self):
        return f"<ProfileInvite(email={self.email}, org={self.organization_id}, status={self.status})>"
