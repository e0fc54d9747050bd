"""
Per-request access descriptor.

The AccessContext is built once per request from the caller's profile and
role grants, then passed by parameter to every pipeline stage. It is never
cached between requests.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from stevi.auth.permissions import GLOBAL_ADMIN_ROLE, Permission
from stevi.auth.session import get_current_user_id
from stevi.db.database import get_db
from stevi.models.org_role import OrgRole, UserOrgRole
from stevi.models.profile import Profile, UserGlobalRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessContext:
    """
    Immutable view of who the caller is and what they may do.

    Every capability is False unless the profile's affiliation is approved.
    """
    user_id: str
    profile_id: str
    organization_id: Optional[int] = None
    affiliation_status: str = "pending"
    global_roles: FrozenSet[str] = field(default_factory=frozenset)
    org_roles: FrozenSet[str] = field(default_factory=frozenset)
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_approved(self) -> bool:
        return self.affiliation_status == "approved"

    @property
    def is_global_admin(self) -> bool:
        return self.is_approved and GLOBAL_ADMIN_ROLE in self.global_roles

    def has_permission(self, permission: Permission) -> bool:
        """Global admins hold every permission; others need it on an org role."""
        if not self.is_approved:
            return False
        return self.is_global_admin or permission.value in self.permissions

    @property
    def can_access_org(self) -> bool:
        return self.has_permission(Permission.ACCESS_ORG)

    @property
    def can_manage_org_users(self) -> bool:
        return self.has_permission(Permission.MANAGE_ORG_USERS)

    @property
    def can_manage_org_invites(self) -> bool:
        return (
            self.has_permission(Permission.MANAGE_ORG_INVITES)
            or self.can_manage_org_users
        )

    @property
    def can_manage_website_content(self) -> bool:
        return self.has_permission(Permission.MANAGE_WEBSITE)

    @property
    def can_access_inventory(self) -> bool:
        return (
            self.has_permission(Permission.INVENTORY_READ)
            or self.can_manage_inventory
        )

    @property
    def can_manage_inventory(self) -> bool:
        return self.has_permission(Permission.INVENTORY_ADMIN)

    @property
    def can_admin_any_org(self) -> bool:
        return self.is_global_admin


def ensure_profile(db: Session, user_id: str) -> Profile:
    """Load the caller's profile, creating a pending one on first sight."""
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if profile:
        return profile

    profile = Profile(user_id=user_id, affiliation_status="pending")
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"Created pending profile {profile.id} for user {user_id}")
    return profile


def resolve_access(db: Session, user_id: str) -> AccessContext:
    """Build the AccessContext for an authenticated user."""
    profile = ensure_profile(db, user_id)

    global_roles = {
        row.role_name
        for row in db.query(UserGlobalRole).filter(UserGlobalRole.profile_id == profile.id).all()
    }

    org_roles: set[str] = set()
    permissions: set[str] = set()
    if profile.organization_id is not None:
        grants = (
            db.query(OrgRole)
            .join(UserOrgRole, UserOrgRole.org_role_id == OrgRole.id)
            .filter(
                UserOrgRole.profile_id == profile.id,
                UserOrgRole.organization_id == profile.organization_id,
            )
            .all()
        )
        for role in grants:
            org_roles.add(role.name)
            permissions.update(role.permissions or [])

    return AccessContext(
        user_id=user_id,
        profile_id=profile.id,
        organization_id=profile.organization_id,
        affiliation_status=profile.affiliation_status,
        global_roles=frozenset(global_roles),
        org_roles=frozenset(org_roles),
        permissions=frozenset(permissions),
    )


async def get_access_context(
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Session = Depends(get_db)
) -> Optional[AccessContext]:
    """
    FastAPI dependency returning the caller's AccessContext.

    Returns None for anonymous callers; the pipeline turns that into an
    unauthenticated result with a login redirect.
    """
    if user_id is None:
        return None
    return resolve_access(db, user_id)
