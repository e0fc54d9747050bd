"""
SQLAlchemy models.

Importing this package registers every table on Base.metadata.
"""
from stevi.models.organization import Organization
from stevi.models.profile import Profile, UserGlobalRole
from stevi.models.org_role import OrgRole, UserOrgRole
from stevi.models.profile_invite import ProfileInvite
from stevi.models.organization_person import OrganizationPerson
from stevi.models.audit_event import AuditEvent
from stevi.models.rate_limit_event import RateLimitEvent
from stevi.models.inventory import InventoryItem, InventoryLocation, InventoryTransaction
from stevi.models.site_footer import SiteFooterSetting

__all__ = [
    "Organization",
    "Profile",
    "UserGlobalRole",
    "OrgRole",
    "UserOrgRole",
    "ProfileInvite",
    "OrganizationPerson",
    "AuditEvent",
    "RateLimitEvent",
    "InventoryItem",
    "InventoryLocation",
    "InventoryTransaction",
    "SiteFooterSetting",
]
