from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from stevi.auth.access import AccessContext, get_access_context
from stevi.db.database import get_db
from stevi.services.email_service import EmailService
from stevi.services.mutation_pipeline import MutationPipeline


async def get_pipeline(
    request: Request,
    db: Session = Depends(get_db),
    access: Optional[AccessContext] = Depends(get_access_context),
) -> MutationPipeline:
    """
    One pipeline per request.

    The login redirect returns to `?next=` when the caller passed one,
    otherwise to the path that was posted to.
    """
    return_path = request.query_params.get("next") or request.url.path
    return MutationPipeline(db, access, return_path=return_path)


def get_email_service() -> EmailService:
    return EmailService()
