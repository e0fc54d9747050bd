"""Standard column definitions for consistency."""
from uuid import uuid4

from sqlalchemy import Column, String
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime


def new_uuid() -> str:
    return str(uuid4())


def uuid_pk():
    return Column(String(36), primary_key=True, default=new_uuid, nullable=False)


def timestamp_created():
    return Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
