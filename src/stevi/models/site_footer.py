"""SiteFooterSetting model - public marketing footer text per slot."""
from sqlalchemy import Column, String, Text, Boolean

from stevi.db.database import Base
from stevi.models.base_model import uuid_pk
from stevi.models.mixins import AuditMixin


class SiteFooterSetting(Base, AuditMixin):
    __tablename__ = "site_footer_settings"

    id = uuid_pk()
    slot = Column(String(100), nullable=False, index=True)
    primary_text = Column(Text, nullable=False)
    secondary_text = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
