"""Link between an organization and a person record (client, contact, etc.)."""
from sqlalchemy import Column, Integer, String, ForeignKey

from stevi.db.database import Base
from stevi.models.mixins import AuditMixin


class OrganizationPerson(Base, AuditMixin):
    __tablename__ = "organization_people"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    person_id = Column(Integer, nullable=False, index=True)
    relationship_type = Column(String(50), nullable=True)
