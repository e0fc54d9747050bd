import pytest

from stevi.auth.access import AccessContext
from stevi.auth.gate import (
    ACTOR_MISMATCH,
    GLOBAL_ADMIN_REQUIRED,
    MEMBERS_OWN_ORG_ONLY,
    SELF_TARGET_DENIED,
    TENANT_MISMATCH,
    Action,
    Allowed,
    Denied,
    Target,
    Unauthenticated,
    authorize,
    ensure_actor_matches,
    ensure_allowed,
)
from stevi.auth.permissions import GLOBAL_ADMIN_ROLE, OrgRoleName, permissions_for_roles
from stevi.errors import AuthenticationFailure, AuthorizationFailure


def _org_access(organization_id=1, roles=(OrgRoleName.ORG_ADMIN.value,), profile_id="p-admin", status="approved"):
    return AccessContext(
        user_id=f"user-{profile_id}",
        profile_id=profile_id,
        organization_id=organization_id,
        affiliation_status=status,
        org_roles=frozenset(roles),
        permissions=frozenset(permissions_for_roles(list(roles))),
    )


def _global_access(profile_id="p-global"):
    return AccessContext(
        user_id="user-global",
        profile_id=profile_id,
        affiliation_status="approved",
        global_roles=frozenset({GLOBAL_ADMIN_ROLE}),
    )


def test_no_access_is_unauthenticated():
    assert isinstance(authorize(None, Action.ORGANIZATION_CREATE), Unauthenticated)
    with pytest.raises(AuthenticationFailure):
        ensure_allowed(None, Action.INVITE_CREATE)


def test_org_admin_can_manage_own_org_members():
    access = _org_access(organization_id=7)
    target = Target(organization_id=7, profile_id="p-other", role_name="portal_org_rep", enable=True)

    assert authorize(access, Action.MEMBER_TOGGLE_ROLE, target) == Allowed()


def test_org_admin_cannot_cross_tenants():
    access = _org_access(organization_id=7)

    decision = authorize(access, Action.MEMBER_REMOVE, Target(organization_id=8, profile_id="p-other"))
    assert decision == Denied(MEMBERS_OWN_ORG_ONLY)

    decision = authorize(access, Action.INVITE_CREATE, Target(organization_id=8))
    assert decision == Denied(TENANT_MISMATCH)


def test_missing_target_org_is_denied_for_tenant_scoped_actions():
    access = _org_access(organization_id=7)

    assert isinstance(authorize(access, Action.ORGANIZATION_UPDATE_SETTINGS, Target()), Denied)


@pytest.mark.parametrize("action", [
    Action.ORGANIZATION_CREATE,
    Action.ORGANIZATION_UPDATE,
    Action.ORGANIZATION_DELETE,
    Action.ORGANIZATION_ATTACH_MEMBER,
])
def test_global_only_actions_reject_org_admins(action):
    access = _org_access(organization_id=7)

    assert authorize(access, action, Target(organization_id=7)) == Denied(GLOBAL_ADMIN_REQUIRED)
    assert authorize(_global_access(), action, Target(organization_id=7)) == Allowed()


def test_global_admin_bypasses_tenant_checks():
    decision = authorize(_global_access(), Action.MEMBER_TOGGLE_ROLE, Target(organization_id=99, profile_id="p-x"))

    assert decision == Allowed()


def test_self_removal_denied_for_everyone():
    org_admin = _org_access(organization_id=7, profile_id="p-self")
    global_admin = _global_access(profile_id="p-self")

    for access in (org_admin, global_admin):
        decision = authorize(access, Action.MEMBER_REMOVE, Target(organization_id=7, profile_id="p-self"))
        assert decision == Denied(SELF_TARGET_DENIED)


def test_self_admin_revoke_denied_but_other_self_toggles_allowed():
    access = _org_access(organization_id=7, profile_id="p-self")

    revoke = Target(organization_id=7, profile_id="p-self", role_name="portal_org_admin", enable=False)
    assert authorize(access, Action.MEMBER_TOGGLE_ROLE, revoke) == Denied(SELF_TARGET_DENIED)

    grant_rep = Target(organization_id=7, profile_id="p-self", role_name="portal_org_rep", enable=True)
    assert authorize(access, Action.MEMBER_TOGGLE_ROLE, grant_rep) == Allowed()


def test_unapproved_profile_has_no_capabilities():
    access = _org_access(organization_id=7, status="pending")

    decision = authorize(access, Action.INVITE_CREATE, Target(organization_id=7))
    assert isinstance(decision, Denied)


def test_org_rep_can_read_but_not_manage_inventory():
    access = _org_access(roles=(OrgRoleName.ORG_REP.value,))

    assert authorize(access, Action.INVENTORY_READ) == Allowed()
    assert isinstance(authorize(access, Action.INVENTORY_MANAGE), Denied)


def test_website_management_needs_explicit_permission():
    org_admin = _org_access()
    editor = AccessContext(
        user_id="u-editor",
        profile_id="p-editor",
        affiliation_status="approved",
        permissions=frozenset({"portal.manage_website"}),
    )

    assert isinstance(authorize(org_admin, Action.WEBSITE_MANAGE), Denied)
    assert authorize(editor, Action.WEBSITE_MANAGE) == Allowed()


def test_ensure_allowed_raises_authorization_failure_with_reason():
    access = _org_access(organization_id=7)

    with pytest.raises(AuthorizationFailure) as exc:
        ensure_allowed(access, Action.ORGANIZATION_DELETE, Target(organization_id=7))

    assert exc.value.message == GLOBAL_ADMIN_REQUIRED


def test_actor_mismatch():
    access = _org_access(profile_id="p-self")

    ensure_actor_matches(access, None)
    ensure_actor_matches(access, "p-self")
    with pytest.raises(AuthorizationFailure) as exc:
        ensure_actor_matches(access, "p-someone-else")
    assert exc.value.message == ACTOR_MISMATCH


def test_partner_edits_are_scoped_to_the_callers_organization():
    access = _org_access(organization_id=7)

    assert authorize(access, Action.INVENTORY_MANAGE_PARTNER, Target(organization_id=7)) == Allowed()
    assert authorize(access, Action.INVENTORY_MANAGE_PARTNER, Target(organization_id=8)) == Denied(TENANT_MISMATCH)
    assert authorize(_global_access(), Action.INVENTORY_MANAGE_PARTNER, Target(organization_id=8)) == Allowed()
