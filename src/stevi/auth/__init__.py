"""
Authentication and authorization for the portal.

This package provides:
- Session token decoding (session.py)
- Permission names and org role templates (permissions.py)
- The per-request AccessContext (access.py)
- The authorization gate (gate.py)
"""
from stevi.auth.session import get_current_user_id
from stevi.auth.permissions import (
    GLOBAL_ADMIN_ROLE,
    DEFAULT_ORG_ROLES,
    OrgRoleName,
    Permission,
)
from stevi.auth.access import AccessContext, get_access_context, resolve_access
from stevi.auth.gate import (
    Action,
    Allowed,
    Denied,
    Target,
    Unauthenticated,
    authorize,
    ensure_allowed,
)

__all__ = [
    "get_current_user_id",
    "GLOBAL_ADMIN_ROLE",
    "DEFAULT_ORG_ROLES",
    "OrgRoleName",
    "Permission",
    "AccessContext",
    "get_access_context",
    "resolve_access",
    "Action",
    "Allowed",
    "Denied",
    "Target",
    "Unauthenticated",
    "authorize",
    "ensure_allowed",
]
