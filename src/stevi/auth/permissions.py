"""
Permission definitions and default role templates.

This module defines:
- All permission names stored on org roles
- The global admin role
- The org role templates seeded onto every new organization
"""
from enum import Enum
from typing import Dict, List


class Permission(str, Enum):
    """All permissions in the portal."""

    ACCESS_ORG = "portal.access_org"
    MANAGE_ORG_USERS = "portal.manage_org_users"
    MANAGE_ORG_INVITES = "portal.manage_org_invites"
    MANAGE_WEBSITE = "portal.manage_website"

    INVENTORY_READ = "inventory.read"
    INVENTORY_ADMIN = "inventory.admin"


class OrgRoleName(str, Enum):
    """Organization roles members can be granted through the member actions."""
    ORG_ADMIN = "portal_org_admin"
    ORG_REP = "portal_org_rep"


GLOBAL_ADMIN_ROLE = "global_admin"


DEFAULT_ORG_ROLES: Dict[OrgRoleName, Dict] = {
    OrgRoleName.ORG_ADMIN: {
        "display_name": "Organization admin",
        "permissions": [
            Permission.ACCESS_ORG.value,
            Permission.MANAGE_ORG_USERS.value,
            Permission.MANAGE_ORG_INVITES.value,
            Permission.INVENTORY_READ.value,
            Permission.INVENTORY_ADMIN.value,
        ],
    },
    OrgRoleName.ORG_REP: {
        "display_name": "Organization representative",
        "permissions": [
            Permission.ACCESS_ORG.value,
            Permission.INVENTORY_READ.value,
        ],
    },
}


def is_supported_org_role(role_name: str | None) -> bool:
    """Check if a role name is one of the toggleable org roles."""
    if role_name is None:
        return False
    try:
        OrgRoleName(role_name)
    except ValueError:
        return False
    return True


def permissions_for_roles(role_names: List[str]) -> set[str]:
    """Union of template permissions for the given org role names."""
    granted: set[str] = set()
    for name in role_names:
        if is_supported_org_role(name):
            granted.update(DEFAULT_ORG_ROLES[OrgRoleName(name)]["permissions"])
    return granted
