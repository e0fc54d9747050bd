"""
Authorization gate.

`authorize(access, action, target)` returns one of three decisions:

- Unauthenticated: no principal (caller redirects to login)
- Denied(reason): principal known but not allowed (inline error / landing)
- Allowed

Rules, in order:
1. No access context -> Unauthenticated.
2. Self-targeting removal or admin demotion -> Denied, for every caller.
3. Global-only actions require global admin.
4. Global admin bypasses all remaining checks.
5. The action's capability must be held.
6. Org-scoped actions require the target org to be the caller's org.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
import logging

from stevi.auth.access import AccessContext
from stevi.auth.permissions import OrgRoleName
from stevi.errors import AuthenticationFailure, AuthorizationFailure

logger = logging.getLogger(__name__)


class Action(str, Enum):
    ORGANIZATION_CREATE = "organization.create"
    ORGANIZATION_UPDATE = "organization.update"
    ORGANIZATION_DELETE = "organization.delete"
    ORGANIZATION_ATTACH_MEMBER = "organization.attach_member"
    ORGANIZATION_UPDATE_SETTINGS = "organization.update_settings"
    MEMBER_TOGGLE_ROLE = "member.toggle_role"
    MEMBER_REMOVE = "member.remove"
    INVITE_CREATE = "invite.create"
    INVENTORY_READ = "inventory.read"
    INVENTORY_MANAGE = "inventory.manage"
    INVENTORY_MANAGE_PARTNER = "inventory.manage_partner"
    WEBSITE_MANAGE = "website.manage"


@dataclass(frozen=True)
class Target:
    """What a mutation acts on. Unused fields stay None."""
    organization_id: Optional[int] = None
    profile_id: Optional[str] = None
    role_name: Optional[str] = None
    enable: Optional[bool] = None


@dataclass(frozen=True)
class Allowed:
    pass


@dataclass(frozen=True)
class Denied:
    reason: str


@dataclass(frozen=True)
class Unauthenticated:
    reason: str = "Sign in to continue."


Decision = Union[Allowed, Denied, Unauthenticated]


GLOBAL_ADMIN_REQUIRED = "Global admin access is required."
ORG_ADMIN_REQUIRED = "Organization admin access is required."
MEMBERS_OWN_ORG_ONLY = "You can only manage members in your organization."
SELF_TARGET_DENIED = "You cannot remove or demote yourself."
TENANT_MISMATCH = "You do not have access to this organization."
INVENTORY_ACCESS_REQUIRED = "Inventory access is required."
INVENTORY_ADMIN_REQUIRED = "Inventory admin access is required."
WEBSITE_ACCESS_REQUIRED = "Website content access is required."

GLOBAL_ONLY_ACTIONS = frozenset({
    Action.ORGANIZATION_CREATE,
    Action.ORGANIZATION_UPDATE,
    Action.ORGANIZATION_DELETE,
    Action.ORGANIZATION_ATTACH_MEMBER,
})

# action -> (capability attribute, denial message, tenant-scoped)
CAPABILITY_RULES = {
    Action.ORGANIZATION_UPDATE_SETTINGS: ("can_manage_org_users", ORG_ADMIN_REQUIRED, True),
    Action.MEMBER_TOGGLE_ROLE: ("can_manage_org_users", MEMBERS_OWN_ORG_ONLY, True),
    Action.MEMBER_REMOVE: ("can_manage_org_users", MEMBERS_OWN_ORG_ONLY, True),
    Action.INVITE_CREATE: ("can_manage_org_invites", ORG_ADMIN_REQUIRED, True),
    Action.INVENTORY_READ: ("can_access_inventory", INVENTORY_ACCESS_REQUIRED, False),
    Action.INVENTORY_MANAGE: ("can_manage_inventory", INVENTORY_ADMIN_REQUIRED, False),
    Action.INVENTORY_MANAGE_PARTNER: ("can_manage_inventory", INVENTORY_ADMIN_REQUIRED, True),
    Action.WEBSITE_MANAGE: ("can_manage_website_content", WEBSITE_ACCESS_REQUIRED, False),
}

TENANT_MISMATCH_MESSAGES = {
    Action.MEMBER_TOGGLE_ROLE: MEMBERS_OWN_ORG_ONLY,
    Action.MEMBER_REMOVE: MEMBERS_OWN_ORG_ONLY,
}


def is_self_demotion(access: AccessContext, action: Action, target: Target) -> bool:
    """Removing yourself, or revoking your own org admin role."""
    if target.profile_id is None or target.profile_id != access.profile_id:
        return False
    if action == Action.MEMBER_REMOVE:
        return True
    return (
        action == Action.MEMBER_TOGGLE_ROLE
        and target.role_name == OrgRoleName.ORG_ADMIN.value
        and target.enable is False
    )


def authorize(access: Optional[AccessContext], action: Action, target: Target = Target()) -> Decision:
    if access is None:
        return Unauthenticated()

    if is_self_demotion(access, action, target):
        return Denied(SELF_TARGET_DENIED)

    if action in GLOBAL_ONLY_ACTIONS:
        return Allowed() if access.is_global_admin else Denied(GLOBAL_ADMIN_REQUIRED)

    if access.is_global_admin:
        return Allowed()

    capability, message, tenant_scoped = CAPABILITY_RULES[action]
    if not getattr(access, capability):
        return Denied(message)

    if tenant_scoped and (
        target.organization_id is None
        or access.organization_id is None
        or target.organization_id != access.organization_id
    ):
        return Denied(TENANT_MISMATCH_MESSAGES.get(action, TENANT_MISMATCH))

    return Allowed()


def ensure_allowed(access: Optional[AccessContext], action: Action, target: Target = Target()) -> AccessContext:
    """
    Raise the matching PipelineError unless `authorize` allows the action.

    Returns the access context so callers can keep using a non-optional value.
    """
    decision = authorize(access, action, target)
    if isinstance(decision, Unauthenticated):
        raise AuthenticationFailure(decision.reason)
    if isinstance(decision, Denied):
        logger.warning(
            f"Denied {action.value}: profile={access.profile_id} "
            f"org={access.organization_id} target={target} reason={decision.reason}"
        )
        raise AuthorizationFailure(decision.reason)
    return access


ACTOR_MISMATCH = "Actor profile mismatch."


def ensure_actor_matches(access: AccessContext, actor_profile_id: Optional[str]) -> None:
    """A submitted `actor_profile_id`, when present, must be the caller's own profile."""
    if actor_profile_id and actor_profile_id != access.profile_id:
        logger.warning(
            f"Actor mismatch: submitted={actor_profile_id} session={access.profile_id}"
        )
        raise AuthorizationFailure(ACTOR_MISMATCH)
