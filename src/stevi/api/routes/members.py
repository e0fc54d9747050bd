"""
Member routes.

Endpoints:
- POST /members/role    - Grant or revoke portal_org_admin / portal_org_rep
- POST /members/remove  - Remove a member from the organization
"""
from fastapi import APIRouter, Depends, Request

from stevi.api.dependencies import get_pipeline
from stevi.api.responses import to_response
from stevi.services.member_service import MemberService
from stevi.services.mutation_pipeline import MutationPipeline
from stevi.surfaces import Surface


def build_router(surface: Surface) -> APIRouter:
    router = APIRouter(prefix=surface.prefix, tags=[f"{surface.name}:members"])

    @router.post("/members/role")
    async def toggle_member_role(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        service = MemberService(pipeline.db)
        result = pipeline.run("member.toggle_role", lambda access: service.toggle_role(access, form, surface))
        return to_response(result)

    @router.post("/members/remove")
    async def remove_member(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        service = MemberService(pipeline.db)
        result = pipeline.run("member.remove", lambda access: service.remove_member(access, form, surface))
        return to_response(result)

    return router
