"""
Organization mutations.

Handles:
- Organization create / update / delete (global admins)
- Attaching a profile to an organization with org roles (global admins)
- Contact and referral settings (org admins, own organization)

Every method decodes the form, authorizes through the gate and returns a
MutationOutcome; MutationPipeline commits, audits and invalidates.
"""
from datetime import datetime, timezone
from typing import Any, Dict
from urllib.parse import urlparse
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stevi.auth.access import AccessContext
from stevi.auth.gate import Action, Target, ensure_allowed
from stevi.errors import IntegrityFailure, ValidationFailure
from stevi.models.org_role import OrgRole, UserOrgRole
from stevi.models.organization import (
    ORGANIZATION_STATUSES,
    ORGANIZATION_TYPES,
    PARTNERSHIP_TYPES,
    Organization,
)
from stevi.models.profile import Profile
from stevi.repositories.organization_repository import OrganizationRepository
from stevi.services.audit_service import EntityRef
from stevi.services.backend_procedures import ensure_org_roles, refresh_profile_claims
from stevi.services.feature_flags import ORG_FEATURE_KEYS, merge_feature_flags
from stevi.services.form_decoder import (
    read_boolean,
    read_enum,
    read_int,
    read_multi,
    read_raw,
    read_string,
    require_string,
)
from stevi.services.mutation_pipeline import MutationOutcome
from stevi.surfaces import Surface

logger = logging.getLogger(__name__)

NAME_REQUIRED = "Organization name is required."
NAME_TAKEN = "An organization with that name already exists."
ORG_CONTEXT_MISSING = "Organization context is missing."
ORG_NOT_FOUND = "Organization not found."
CONFIRM_NAME_MISMATCH = "Type the organization name to confirm deletion."
DEPENDENTS_EXIST = (
    "Remove or reassign members, invites, linked people, and supplied stock history "
    "before deleting this organization."
)
MEMBER_FIELDS_REQUIRED = "Profile and organization are required."
ROLES_REQUIRED = "Select at least one role for the member."
NO_VALID_ROLES = "No valid roles selected for this organization."
PROFILE_NOT_FOUND = "Profile not found."
INVALID_WEBSITE = "Enter a valid website URL starting with http:// or https://."
NO_CHANGES = "No changes to save."

# Text columns written verbatim by a full organization update
DETAIL_TEXT_FIELDS = (
    "website",
    "email",
    "phone",
    "description",
    "services_provided",
    "address",
    "city",
    "province",
    "postal_code",
    "contact_person",
    "contact_title",
    "contact_phone",
    "contact_email",
    "operating_hours",
    "availability_notes",
    "referral_process",
    "special_requirements",
    "notes",
)

SETTINGS_FIELDS = (
    "contact_person",
    "contact_title",
    "contact_email",
    "contact_phone",
    "website",
    "referral_process",
    "special_requirements",
    "availability_notes",
)


def org_ref(organization_id: int) -> EntityRef:
    return EntityRef("core", "organizations", organization_id)


def is_valid_website(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class OrganizationService:
    """Organization lifecycle and membership attachment."""

    def __init__(self, db: Session):
        self.db = db

    def _decode_details(self, form: Any) -> Dict[str, Any]:
        """Complete column payload; absent fields become their defaults."""
        fields = {key: read_string(form, key) for key in DETAIL_TEXT_FIELDS}
        website = fields["website"]
        if website and not is_valid_website(website):
            raise ValidationFailure(INVALID_WEBSITE, field_errors={"website": INVALID_WEBSITE})
        fields["status"] = read_enum(form, "status", ORGANIZATION_STATUSES) or "active"
        fields["organization_type"] = read_enum(form, "organization_type", ORGANIZATION_TYPES)
        fields["partnership_type"] = read_enum(form, "partnership_type", PARTNERSHIP_TYPES)
        fields["is_active"] = read_boolean(form, "is_active", False)
        return fields

    def _require_name(self, form: Any, exclude_id: int | None = None) -> str:
        name = require_string(form, "name", NAME_REQUIRED)
        if OrganizationRepository.find_by_name(self.db, name, exclude_id=exclude_id):
            raise ValidationFailure(NAME_TAKEN, field_errors={"name": NAME_TAKEN})
        return name

    def _load(self, organization_id: int | None) -> Organization:
        if organization_id is None:
            raise ValidationFailure(ORG_CONTEXT_MISSING)
        organization = OrganizationRepository.get_by_id(self.db, organization_id)
        if organization is None:
            raise ValidationFailure(ORG_NOT_FOUND)
        return organization

    def create(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        ensure_allowed(access, Action.ORGANIZATION_CREATE)

        name = self._require_name(form)
        details = self._decode_details(form)
        features = read_multi(form, "features", ORG_FEATURE_KEYS)

        organization = Organization(
            name=name,
            services_tags=merge_feature_flags(None, features) if features else None,
            created_by=access.profile_id,
            updated_by=access.profile_id,
            **details,
        )
        self.db.add(organization)
        self.db.flush()
        ensure_org_roles(self.db, organization.id)

        logger.info(f"Created organization {organization.id} ({name})")
        return MutationOutcome(
            action="organization_created",
            entity_ref=org_ref(organization.id),
            meta={
                "pk_int": organization.id,
                "name": name,
                "status": details["status"],
                "features": features,
            },
            paths=[surface.organizations_path],
            message="Organization created.",
            data={"organization_id": organization.id},
        )

    def update(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        organization_id = read_int(form, "organization_id")
        ensure_allowed(access, Action.ORGANIZATION_UPDATE, Target(organization_id=organization_id))

        organization = self._load(organization_id)
        name = self._require_name(form, exclude_id=organization.id)
        details = self._decode_details(form)
        features = read_multi(form, "features", ORG_FEATURE_KEYS)

        # Merge against the stored tags so non-feature tags survive
        organization.services_tags = merge_feature_flags(organization.services_tags, features)
        organization.name = name
        for key, value in details.items():
            setattr(organization, key, value)
        organization.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="organization_updated",
            entity_ref=org_ref(organization.id),
            meta={
                "pk_int": organization.id,
                "status": details["status"],
                "is_active": details["is_active"],
                "features": features,
            },
            paths=[surface.organizations_path, surface.organization_detail_path(organization.id)],
            message="Organization updated.",
        )

    def delete(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        organization_id = read_int(form, "organization_id")
        ensure_allowed(access, Action.ORGANIZATION_DELETE, Target(organization_id=organization_id))

        organization = self._load(organization_id)
        confirm_name = read_string(form, "confirm_name")
        if not confirm_name or confirm_name.lower() != organization.name.strip().lower():
            raise ValidationFailure(CONFIRM_NAME_MISMATCH, field_errors={"confirm_name": CONFIRM_NAME_MISMATCH})

        dependents = OrganizationRepository.count_dependents(self.db, organization.id)
        if any(dependents.values()):
            logger.warning(f"Delete of organization {organization.id} blocked: {dependents}")
            raise IntegrityFailure(DEPENDENTS_EXIST)

        name = organization.name
        try:
            self.db.query(UserOrgRole).filter(
                UserOrgRole.organization_id == organization.id
            ).delete(synchronize_session=False)
            self.db.query(OrgRole).filter(
                OrgRole.organization_id == organization.id
            ).delete(synchronize_session=False)
            self.db.delete(organization)
            self.db.flush()
        except IntegrityError as e:
            logger.warning(f"Delete of organization {organization_id} rejected by the database: {e}")
            raise IntegrityFailure(DEPENDENTS_EXIST)

        logger.info(f"Deleted organization {organization_id} ({name})")
        return MutationOutcome(
            action="organization_deleted",
            entity_ref=org_ref(organization_id),
            meta={"pk_int": organization_id, "name": name},
            paths=[surface.organizations_path, surface.organization_detail_path(organization_id)],
            message="Organization deleted.",
        )

    def attach_member(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        organization_id = read_int(form, "organization_id")
        profile_id = read_string(form, "profile_id")
        ensure_allowed(
            access,
            Action.ORGANIZATION_ATTACH_MEMBER,
            Target(organization_id=organization_id, profile_id=profile_id),
        )

        if organization_id is None or profile_id is None:
            raise ValidationFailure(MEMBER_FIELDS_REQUIRED)
        role_ids = read_multi(form, "role_ids")
        if not role_ids:
            raise ValidationFailure(ROLES_REQUIRED, field_errors={"role_ids": ROLES_REQUIRED})

        organization = self._load(organization_id)
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if profile is None:
            raise ValidationFailure(PROFILE_NOT_FOUND)

        ensure_org_roles(self.db, organization.id)
        valid_role_ids = [
            role.id
            for role in self.db.query(OrgRole).filter(
                OrgRole.organization_id == organization.id,
                OrgRole.id.in_(role_ids),
            ).all()
        ]
        if not valid_role_ids:
            raise ValidationFailure(NO_VALID_ROLES, field_errors={"role_ids": NO_VALID_ROLES})

        profile.organization_id = organization.id
        profile.affiliation_status = "approved"
        profile.affiliation_reviewed_at = datetime.now(timezone.utc)
        profile.affiliation_reviewed_by = access.profile_id

        self.db.query(UserOrgRole).filter(
            UserOrgRole.profile_id == profile.id,
            UserOrgRole.organization_id == organization.id,
        ).delete(synchronize_session=False)
        for role_id in valid_role_ids:
            self.db.add(UserOrgRole(
                profile_id=profile.id,
                organization_id=organization.id,
                org_role_id=role_id,
                granted_by=access.profile_id,
            ))
        self.db.flush()
        refresh_profile_claims(self.db, profile.id)

        return MutationOutcome(
            action="org_member_attached",
            entity_ref=EntityRef("portal", "profiles", profile.id),
            meta={"organization_id": organization.id, "role_ids": valid_role_ids},
            paths=[surface.members_path, surface.organization_detail_path(organization.id)],
            message="Member attached.",
        )

    def update_settings(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        organization_id = read_int(form, "organization_id") or access.organization_id
        ensure_allowed(access, Action.ORGANIZATION_UPDATE_SETTINGS, Target(organization_id=organization_id))

        organization = self._load(organization_id)

        submitted = {
            key: read_string(form, key)
            for key in SETTINGS_FIELDS
            if read_raw(form, key) is not None
        }
        website = submitted.get("website")
        if website and not is_valid_website(website):
            raise ValidationFailure(INVALID_WEBSITE, field_errors={"website": INVALID_WEBSITE})

        changed = sorted(
            key for key, value in submitted.items()
            if getattr(organization, key) != value
        )
        if not changed:
            raise ValidationFailure(NO_CHANGES)

        for key in changed:
            setattr(organization, key, submitted[key])
        organization.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="org_settings_updated",
            entity_ref=org_ref(organization.id),
            meta={"updated_keys": changed},
            paths=[surface.settings_path],
            message="Organization settings saved.",
        )
