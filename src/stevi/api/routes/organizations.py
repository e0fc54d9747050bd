"""
Organization routes.

Endpoints (under each admin surface prefix):
- GET  /organizations                 - List organizations (global admins)
- POST /organizations                 - Create organization
- POST /organizations/update          - Update organization
- POST /organizations/delete          - Delete organization (confirm_name)
- POST /organizations/members/attach  - Attach a profile with org roles

Organization workspace:
- POST /settings                      - Update own organization's contact settings
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from opentelemetry import trace
from sqlalchemy.orm import Session

from stevi.api.dependencies import get_pipeline
from stevi.api.responses import to_response
from stevi.api.routes.schemas import OrganizationResponse
from stevi.auth.access import AccessContext, get_access_context
from stevi.db.database import get_db
from stevi.repositories.organization_repository import OrganizationRepository
from stevi.services.mutation_pipeline import MutationPipeline
from stevi.services.organization_service import OrganizationService
from stevi.surfaces import Surface

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


def build_router(surface: Surface) -> APIRouter:
    router = APIRouter(prefix=surface.prefix, tags=[f"{surface.name}:organizations"])

    @router.get("/organizations", response_model=List[OrganizationResponse])
    def list_organizations(
        offset: int = 0,
        limit: int = 50,
        access: Optional[AccessContext] = Depends(get_access_context),
        db: Session = Depends(get_db),
    ):
        if access is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in to continue.")
        if not access.can_admin_any_org:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Global admin access is required.")
        return OrganizationRepository.list_all(db, offset=offset, limit=min(limit, 200))

    @router.post("/organizations")
    async def create_organization(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        with tracer.start_as_current_span("api.organizations.create"):
            service = OrganizationService(pipeline.db)
            result = pipeline.run("organization.create", lambda access: service.create(access, form, surface))
        return to_response(result, created=True)

    @router.post("/organizations/update")
    async def update_organization(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        with tracer.start_as_current_span("api.organizations.update"):
            service = OrganizationService(pipeline.db)
            result = pipeline.run("organization.update", lambda access: service.update(access, form, surface))
        return to_response(result)

    @router.post("/organizations/delete")
    async def delete_organization(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        with tracer.start_as_current_span("api.organizations.delete"):
            service = OrganizationService(pipeline.db)
            result = pipeline.run("organization.delete", lambda access: service.delete(access, form, surface))
        return to_response(result)

    @router.post("/organizations/members/attach")
    async def attach_member(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        with tracer.start_as_current_span("api.organizations.attach_member"):
            service = OrganizationService(pipeline.db)
            result = pipeline.run(
                "organization.attach_member",
                lambda access: service.attach_member(access, form, surface),
            )
        return to_response(result)

    return router


def build_settings_router(surface: Surface) -> APIRouter:
    router = APIRouter(prefix=surface.prefix, tags=[f"{surface.name}:settings"])

    @router.post("/settings")
    async def update_settings(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        with tracer.start_as_current_span("api.organizations.update_settings"):
            service = OrganizationService(pipeline.db)
            result = pipeline.run(
                "organization.update_settings",
                lambda access: service.update_settings(access, form, surface),
            )
        return to_response(result)

    return router
