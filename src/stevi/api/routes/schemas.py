from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class OrganizationResponse(BaseModel):
    id: int
    name: str
    status: str
    is_active: bool
    organization_type: Optional[str] = None
    partnership_type: Optional[str] = None
    website: Optional[str] = None
    services_tags: Optional[List[str]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockLevelResponse(BaseModel):
    item_id: str
    location_id: str
    on_hand: float
