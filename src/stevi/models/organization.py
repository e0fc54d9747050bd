"""
Organization model - the tenant record.

Organizations are both the unit of data isolation for members and the
"partner" records used by inventory (providers of donated stock).
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, JSON

from stevi.db.database import Base
from stevi.models.mixins import AuditMixin


ORGANIZATION_STATUSES = ("active", "inactive", "pending", "under_review")

ORGANIZATION_TYPES = (
    "addiction",
    "crisis_support",
    "food_services",
    "housing",
    "mental_health",
    "multi_service",
    "healthcare",
    "government",
    "non_profit",
    "faith_based",
    "community_center",
    "legal_services",
    "other",
)

PARTNERSHIP_TYPES = (
    "referral_partner",
    "service_provider",
    "funding_partner",
    "collaborative_partner",
    "resource_partner",
    "other",
)


class Organization(Base, AuditMixin):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Name doubles as the delete confirmation token, so it must be unique
    name = Column(String(255), nullable=False, unique=True, index=True)

    status = Column(String(50), nullable=False, default="active")
    is_active = Column(Boolean, nullable=False, default=False)
    organization_type = Column(String(50), nullable=True)
    partnership_type = Column(String(50), nullable=True)

    website = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    description = Column(Text, nullable=True)
    services_provided = Column(Text, nullable=True)

    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)

    contact_person = Column(String(255), nullable=True)
    contact_title = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    contact_email = Column(String(255), nullable=True)

    operating_hours = Column(Text, nullable=True)
    availability_notes = Column(Text, nullable=True)
    referral_process = Column(Text, nullable=True)
    special_requirements = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Free-form tags; recognized "feature:*" keys act as feature flags
    services_tags = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<Organization(id={self.id}, name={self.name}, status={self.status})>"
