"""
Website content routes.

Endpoints:
- POST /marketing/footer - Update the public footer for a slot
"""
from fastapi import APIRouter, Depends, Request

from stevi.api.dependencies import get_pipeline
from stevi.api.responses import to_response
from stevi.services.mutation_pipeline import MutationPipeline
from stevi.services.site_content_service import SiteContentService
from stevi.surfaces import Surface


def build_router(surface: Surface) -> APIRouter:
    router = APIRouter(prefix=surface.prefix, tags=[f"{surface.name}:website"])

    @router.post("/marketing/footer")
    async def update_footer(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        service = SiteContentService(pipeline.db)
        result = pipeline.run("website.update_footer", lambda access: service.update_footer(access, form, surface))
        return to_response(result)

    return router
