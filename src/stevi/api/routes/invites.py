"""
Invite routes.

Endpoints:
- POST /invites - Invite someone to an organization (rate limited)

The invitation email is sent from a background task once the invite is
committed, so the response does not wait on SMTP.
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from stevi.api.dependencies import get_email_service, get_pipeline
from stevi.api.responses import to_response
from stevi.models.profile import Profile
from stevi.models.profile_invite import ProfileInvite
from stevi.repositories.organization_repository import OrganizationRepository
from stevi.services.email_service import EmailService
from stevi.services.invite_service import InviteService
from stevi.services.mutation_pipeline import MutationPipeline
from stevi.surfaces import Surface

logger = logging.getLogger(__name__)


def queue_invitation_email(db, background_tasks: BackgroundTasks, email_service: EmailService, invite_id: str) -> None:
    invite = db.query(ProfileInvite).filter(ProfileInvite.id == invite_id).first()
    if invite is None:
        logger.warning(f"Invite {invite_id} vanished before its email was queued")
        return
    organization = OrganizationRepository.get_by_id(db, invite.organization_id)
    inviter = db.query(Profile).filter(Profile.id == invite.invited_by_profile_id).first()

    background_tasks.add_task(
        email_service.send_invitation_email,
        to_email=invite.email,
        organization_name=organization.name if organization else "your organization",
        invitation_token=invite.token,
        inviter_name=inviter.display_name if inviter else None,
        message=invite.message,
    )


def build_router(surface: Surface) -> APIRouter:
    router = APIRouter(prefix=surface.prefix, tags=[f"{surface.name}:invites"])

    @router.post("/invites")
    async def create_invite(
        request: Request,
        background_tasks: BackgroundTasks,
        pipeline: MutationPipeline = Depends(get_pipeline),
        email_service: EmailService = Depends(get_email_service),
    ):
        form = await request.form()
        service = InviteService(pipeline.db)
        result = pipeline.run("invite.create", lambda access: service.create(access, form, surface))

        if result.ok:
            queue_invitation_email(pipeline.db, background_tasks, email_service, result.data["invite_id"])
        return to_response(result, created=True)

    return router
