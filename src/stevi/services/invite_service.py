"""
Organization invite creation.

Order matters: the rate limiter is only consulted after authorization so
unauthorized attempts never consume the caller's quota.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import logging
import secrets

from sqlalchemy import func
from sqlalchemy.orm import Session

from stevi.auth.access import AccessContext
from stevi.auth.gate import Action, Target, ensure_allowed
from stevi.config import INVITE_EXPIRY_DAYS, ORG_INVITE_RATE_LIMIT, ORG_INVITE_RATE_WINDOW_MS
from stevi.errors import RateLimitedFailure, ValidationFailure
from stevi.models.profile_invite import ProfileInvite
from stevi.repositories.organization_repository import OrganizationRepository
from stevi.services.audit_service import EntityRef
from stevi.services.form_decoder import read_int, read_string
from stevi.services.mutation_pipeline import MutationOutcome
from stevi.services.rate_limit_service import RateLimiter, format_invite_cooldown
from stevi.surfaces import Surface

logger = logging.getLogger(__name__)

INVITE_EVENT_TYPE = "org_invite"

INVALID_EMAIL = "Enter a valid email address."
ORG_CONTEXT_MISSING = "Organization context is missing."
ORG_NOT_FOUND = "Organization not found."
INVITE_SENT = "Invitation sent. Recipients receive a secure link."


class InviteService:
    def __init__(self, db: Session, limiter: Optional[RateLimiter] = None):
        self.db = db
        self.limiter = limiter or RateLimiter(db)

    def create(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        """
        Create a pending invite for an email address.

        Global admins may target any organization via `organization_id`;
        everyone else invites into their own organization.
        """
        email = read_string(form, "email")
        if not email or "@" not in email:
            raise ValidationFailure(INVALID_EMAIL, field_errors={"email": INVALID_EMAIL})
        email = email.lower()

        requested_org = read_int(form, "organization_id")
        organization_id = requested_org if requested_org is not None else access.organization_id

        ensure_allowed(access, Action.INVITE_CREATE, Target(organization_id=organization_id))
        if organization_id is None:
            raise ValidationFailure(ORG_CONTEXT_MISSING)

        decision = self.limiter.check(
            actor_key=access.profile_id,
            event_type=INVITE_EVENT_TYPE,
            limit=ORG_INVITE_RATE_LIMIT,
            window_ms=ORG_INVITE_RATE_WINDOW_MS,
        )
        if not decision.allowed:
            raise RateLimitedFailure(format_invite_cooldown(decision.retry_in_ms), decision.retry_in_ms)

        if OrganizationRepository.get_by_id(self.db, organization_id) is None:
            raise ValidationFailure(ORG_NOT_FOUND)

        pending = self.db.query(ProfileInvite).filter(
            ProfileInvite.organization_id == organization_id,
            func.lower(ProfileInvite.email) == email,
            ProfileInvite.status == "pending",
        ).first()
        if pending:
            message = f"{email} already has a pending invitation."
            raise ValidationFailure(message, field_errors={"email": message})

        invite = ProfileInvite(
            email=email,
            display_name=read_string(form, "display_name"),
            position_title=read_string(form, "position_title"),
            message=read_string(form, "message"),
            organization_id=organization_id,
            affiliation_type="agency_partner",
            invited_by_profile_id=access.profile_id,
            invited_by_user_id=access.user_id,
            token=secrets.token_urlsafe(32),
            status="pending",
            expires_at=datetime.now(timezone.utc) + timedelta(days=INVITE_EXPIRY_DAYS),
        )
        self.db.add(invite)
        self.db.flush()

        logger.info(f"Created invitation for {email} to join organization {organization_id}")
        return MutationOutcome(
            action="org_invite_created",
            entity_ref=EntityRef("portal", "profile_invites", invite.id),
            meta={"organization_id": organization_id, "email": email},
            paths=[surface.invites_path],
            message=INVITE_SENT,
            data={"invite_id": invite.id, "organization_id": organization_id},
        )
