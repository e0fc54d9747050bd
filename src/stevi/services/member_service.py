"""
Member role management inside one organization.
"""
from typing import Any, Optional
import logging

from sqlalchemy.orm import Session

from stevi.auth.access import AccessContext
from stevi.auth.gate import MEMBERS_OWN_ORG_ONLY, Action, Target, ensure_allowed
from stevi.auth.permissions import OrgRoleName, is_supported_org_role
from stevi.errors import AuthorizationFailure, ValidationFailure
from stevi.models.profile import Profile
from stevi.services.audit_service import EntityRef
from stevi.services.backend_procedures import refresh_profile_claims, set_profile_role
from stevi.services.form_decoder import read_boolean, read_int, read_string
from stevi.services.mutation_pipeline import MutationOutcome
from stevi.surfaces import Surface

logger = logging.getLogger(__name__)

PROFILE_REQUIRED = "Profile is required."
UNSUPPORTED_ROLE = "Unsupported role."
ORG_CONTEXT_MISSING = "Organization context is missing."


class MemberService:
    def __init__(self, db: Session):
        self.db = db

    def _member_in_org(self, profile_id: str, organization_id: Optional[int]) -> Profile:
        if organization_id is None:
            raise ValidationFailure(ORG_CONTEXT_MISSING)
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if profile is None or profile.organization_id != organization_id:
            raise AuthorizationFailure(MEMBERS_OWN_ORG_ONLY)
        return profile

    def toggle_role(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        """Grant (`enable=true`) or revoke an org role for a member."""
        profile_id = read_string(form, "profile_id")
        role_name = read_string(form, "role_name")
        enable = read_boolean(form, "enable", False)
        organization_id = read_int(form, "organization_id") or access.organization_id

        if profile_id is None:
            raise ValidationFailure(PROFILE_REQUIRED)
        if not is_supported_org_role(role_name):
            raise ValidationFailure(UNSUPPORTED_ROLE, field_errors={"role_name": UNSUPPORTED_ROLE})

        ensure_allowed(
            access,
            Action.MEMBER_TOGGLE_ROLE,
            Target(organization_id=organization_id, profile_id=profile_id, role_name=role_name, enable=enable),
        )
        profile = self._member_in_org(profile_id, organization_id)

        set_profile_role(
            self.db,
            profile_id=profile.id,
            role_name=role_name,
            enable=enable,
            organization_id=organization_id,
            actor_profile_id=access.profile_id,
        )
        refresh_profile_claims(self.db, profile.id)

        return MutationOutcome(
            action="org_role_granted" if enable else "org_role_revoked",
            entity_ref=EntityRef("portal", "profiles", profile.id),
            meta={"role": role_name, "organization_id": organization_id},
            paths=[surface.members_path],
            message="Role updated.",
        )

    def remove_member(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        """Revoke every org role and detach the profile from the organization."""
        profile_id = read_string(form, "profile_id")
        organization_id = read_int(form, "organization_id") or access.organization_id

        if profile_id is None:
            raise ValidationFailure(PROFILE_REQUIRED)

        ensure_allowed(
            access,
            Action.MEMBER_REMOVE,
            Target(organization_id=organization_id, profile_id=profile_id),
        )
        profile = self._member_in_org(profile_id, organization_id)

        for role_name in OrgRoleName:
            set_profile_role(
                self.db,
                profile_id=profile.id,
                role_name=role_name.value,
                enable=False,
                organization_id=organization_id,
                actor_profile_id=access.profile_id,
            )
        profile.organization_id = None
        self.db.flush()
        refresh_profile_claims(self.db, profile.id)

        logger.info(f"Removed profile {profile.id} from organization {organization_id}")
        return MutationOutcome(
            action="org_member_removed",
            entity_ref=EntityRef("portal", "profiles", profile.id),
            meta={"organization_id": organization_id},
            paths=[surface.members_path],
            message="Member removed.",
        )
