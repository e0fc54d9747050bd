"""
Role assignment and claims refresh procedures.

Both are idempotent and never commit: they run inside the caller's
mutation and are committed with it.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from stevi.auth.permissions import DEFAULT_ORG_ROLES
from stevi.models.org_role import OrgRole, UserOrgRole
from stevi.models.profile import Profile, UserGlobalRole

logger = logging.getLogger(__name__)


def ensure_org_roles(db: Session, organization_id: int) -> Dict[str, OrgRole]:
    """Seed the default org roles for an organization if missing. Returns them by name."""
    existing = {
        role.name: role
        for role in db.query(OrgRole).filter(OrgRole.organization_id == organization_id).all()
    }
    created = False
    for role_name, template in DEFAULT_ORG_ROLES.items():
        if role_name.value in existing:
            continue
        role = OrgRole(
            organization_id=organization_id,
            name=role_name.value,
            display_name=template["display_name"],
            permissions=list(template["permissions"]),
        )
        db.add(role)
        existing[role_name.value] = role
        created = True
    if created:
        db.flush()
    return existing


def set_profile_role(
    db: Session,
    *,
    profile_id: str,
    role_name: str,
    enable: bool,
    organization_id: int,
    actor_profile_id: Optional[str] = None,
) -> bool:
    """
    Grant or revoke an org role for a profile.

    Returns True when a row changed; granting a held role or revoking an
    absent one is a no-op.
    """
    roles = ensure_org_roles(db, organization_id)
    role = roles[role_name]

    grant = db.query(UserOrgRole).filter(
        UserOrgRole.profile_id == profile_id,
        UserOrgRole.organization_id == organization_id,
        UserOrgRole.org_role_id == role.id,
    ).first()

    if enable and grant is None:
        db.add(UserOrgRole(
            profile_id=profile_id,
            organization_id=organization_id,
            org_role_id=role.id,
            granted_by=actor_profile_id,
        ))
        db.flush()
        logger.info(f"Granted {role_name} on org {organization_id} to profile {profile_id}")
        return True

    if not enable and grant is not None:
        db.delete(grant)
        db.flush()
        logger.info(f"Revoked {role_name} on org {organization_id} from profile {profile_id}")
        return True

    return False


def refresh_profile_claims(db: Session, profile_id: str) -> Optional[Dict]:
    """Recompute the claims snapshot stored on a profile."""
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if profile is None:
        return None

    global_roles: List[str] = sorted(
        row.role_name
        for row in db.query(UserGlobalRole).filter(UserGlobalRole.profile_id == profile_id).all()
    )

    org_roles: List[str] = []
    permissions: set[str] = set()
    if profile.organization_id is not None:
        for role in (
            db.query(OrgRole)
            .join(UserOrgRole, UserOrgRole.org_role_id == OrgRole.id)
            .filter(
                UserOrgRole.profile_id == profile_id,
                UserOrgRole.organization_id == profile.organization_id,
            )
            .all()
        ):
            org_roles.append(role.name)
            permissions.update(role.permissions or [])

    claims = {
        "global_roles": global_roles,
        "org_roles": sorted(org_roles),
        "organization_id": profile.organization_id,
        "permissions": sorted(permissions),
    }
    profile.claims = claims
    profile.claims_refreshed_at = datetime.now(timezone.utc)
    db.flush()
    return claims
