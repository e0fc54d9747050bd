"""
Inventory routes.

Endpoints:
- GET  /inventory/stock                    - On-hand totals per item/location
- POST /inventory/items[/update|/toggle|/delete]
- POST /inventory/locations[/update|/toggle|/delete]
- POST /inventory/organizations[/update|/toggle]
- POST /inventory/stock/receive|transfer|adjust|bulk-receipt
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from stevi.api.dependencies import get_pipeline
from stevi.api.responses import to_response
from stevi.api.routes.schemas import StockLevelResponse
from stevi.auth.access import AccessContext, get_access_context
from stevi.db.database import get_db
from stevi.repositories.inventory_repository import InventoryRepository
from stevi.services.inventory_service import InventoryService
from stevi.services.mutation_pipeline import MutationPipeline
from stevi.surfaces import Surface

# path, pipeline action name, InventoryService method, creates a row
INVENTORY_ACTIONS = (
    ("/inventory/items", "inventory.create_item", "create_item", True),
    ("/inventory/items/update", "inventory.update_item", "update_item", False),
    ("/inventory/items/toggle", "inventory.toggle_item", "toggle_item", False),
    ("/inventory/items/delete", "inventory.delete_item", "delete_item", False),
    ("/inventory/locations", "inventory.create_location", "create_location", True),
    ("/inventory/locations/update", "inventory.update_location", "update_location", False),
    ("/inventory/locations/toggle", "inventory.toggle_location", "toggle_location", False),
    ("/inventory/locations/delete", "inventory.delete_location", "delete_location", False),
    ("/inventory/organizations", "inventory.create_partner", "create_partner", True),
    ("/inventory/organizations/update", "inventory.update_partner", "update_partner", False),
    ("/inventory/organizations/toggle", "inventory.toggle_partner", "toggle_partner", False),
    ("/inventory/stock/receive", "inventory.receive_stock", "receive_stock", True),
    ("/inventory/stock/transfer", "inventory.transfer_stock", "transfer_stock", True),
    ("/inventory/stock/adjust", "inventory.adjust_stock", "adjust_stock", True),
    ("/inventory/stock/bulk-receipt", "inventory.bulk_receipt", "bulk_receipt", True),
)


def build_router(surface: Surface) -> APIRouter:
    router = APIRouter(prefix=surface.prefix, tags=[f"{surface.name}:inventory"])

    @router.get("/inventory/stock", response_model=List[StockLevelResponse])
    def list_stock_levels(
        access: Optional[AccessContext] = Depends(get_access_context),
        db: Session = Depends(get_db),
    ):
        if access is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in to continue.")
        if not access.can_access_inventory:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inventory access is required.")
        return InventoryRepository.stock_levels(db)

    for path, action_name, method_name, created in INVENTORY_ACTIONS:
        router.add_api_route(
            path,
            _inventory_endpoint(surface, action_name, method_name, created),
            methods=["POST"],
            name=f"{surface.name}_{method_name}",
        )

    return router


def _inventory_endpoint(surface: Surface, action_name: str, method_name: str, created: bool):
    async def endpoint(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
        form = await request.form()
        handler = getattr(InventoryService(pipeline.db), method_name)
        result = pipeline.run(action_name, lambda access: handler(access, form, surface))
        return to_response(result, created=created)

    endpoint.__name__ = method_name
    return endpoint
