"""
Inventory mutations.

Handles:
- Items: create / update / toggle active / delete
- Locations: create / update / toggle active / delete
- Partner organizations: create / update / activate / deactivate
- Stock: receive, transfer, adjust, bulk receipt

Stock changes only ever append InventoryTransaction rows; on-hand is read
back through InventoryRepository.on_hand.
"""
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import uuid4
import json
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stevi.auth.access import AccessContext
from stevi.auth.gate import Action, Target, ensure_actor_matches, ensure_allowed
from stevi.errors import IntegrityFailure, ValidationFailure
from stevi.models.inventory import InventoryItem, InventoryLocation, InventoryTransaction
from stevi.models.organization import ORGANIZATION_TYPES, PARTNERSHIP_TYPES, Organization
from stevi.repositories.inventory_repository import InventoryRepository
from stevi.repositories.organization_repository import OrganizationRepository
from stevi.services.audit_service import EntityRef
from stevi.services.form_decoder import (
    parse_number,
    read_boolean,
    read_enum,
    read_int,
    read_number,
    read_raw,
    read_string,
    require_string,
)
from stevi.services.mutation_pipeline import MutationOutcome
from stevi.surfaces import Surface

logger = logging.getLogger(__name__)

ITEM_NAME_REQUIRED = "Item name is required."
CATEGORY_REQUIRED = "Select a category."
ITEM_CONTEXT_MISSING = "Item context is missing."
ITEM_NOT_FOUND = "Item not found."
ITEM_HAS_HISTORY = "Remove stock history before deleting this item."

LOCATION_NAME_REQUIRED = "Location name is required."
LOCATION_CODE_REQUIRED = "Location code is required."
LOCATION_CODE_TAKEN = "A location with that code already exists."
LOCATION_CONTEXT_MISSING = "Location context is missing."
LOCATION_NOT_FOUND = "Location not found."
LOCATION_HAS_STOCK = "Move or clear stock before deleting this location."

PARTNER_NAME_REQUIRED = "Organization name is required."
PARTNER_NAME_TAKEN = "An organization with that name already exists."
PARTNER_CONTEXT_MISSING = "Organization context is missing."
PARTNER_NOT_FOUND = "Organization not found."

SELECT_ITEM = "Select an item."
SELECT_LOCATION = "Select a location."
INITIAL_LOCATION_REQUIRED = "Select a location for the initial stock."
QUANTITY_POSITIVE = "Quantity must be greater than zero."
SAME_LOCATION = "Choose two different locations."
INSUFFICIENT_STOCK = "Insufficient stock at the source location."
ADJUSTMENT_ZERO = "Adjustment cannot be zero."
REASON_REQUIRED = "Include a reason for this adjustment."
NEGATIVE_STOCK = "Adjustment would make stock negative."
INVALID_EXPIRY = "Enter a valid expiry date."
INVALID_BULK_PAYLOAD = "Invalid bulk receipt payload."
EMPTY_BULK_PAYLOAD = "Add at least one item to receive."


def item_ref(item_id: str) -> EntityRef:
    return EntityRef("inventory", "items", item_id)


def location_ref(location_id: str) -> EntityRef:
    return EntityRef("inventory", "locations", location_id)


def transaction_ref(transaction_id: str) -> EntityRef:
    return EntityRef("inventory", "transactions", transaction_id)


def parse_expiry(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationFailure(INVALID_EXPIRY, field_errors={"expiry_date": INVALID_EXPIRY})


def positive_quantity(value: Any) -> float:
    quantity = parse_number(value)
    if quantity <= 0:
        raise ValidationFailure(QUANTITY_POSITIVE, field_errors={"quantity": QUANTITY_POSITIVE})
    return quantity


class InventoryService:
    """All inventory mutations. Each method returns a MutationOutcome."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------
    def _authorize(self, access: AccessContext, form: Any) -> None:
        ensure_allowed(access, Action.INVENTORY_MANAGE)
        ensure_actor_matches(access, read_string(form, "actor_profile_id"))

    def _authorize_partner(self, access: AccessContext, form: Any) -> Organization:
        """Existing organization rows are tenant records; non-global callers may only edit their own."""
        organization_id = read_int(form, "organization_id")
        ensure_allowed(access, Action.INVENTORY_MANAGE_PARTNER, Target(organization_id=organization_id))
        ensure_actor_matches(access, read_string(form, "actor_profile_id"))
        return self._partner(organization_id)

    def _item(self, item_id: Optional[str]) -> InventoryItem:
        if item_id is None:
            raise ValidationFailure(SELECT_ITEM, field_errors={"item_id": SELECT_ITEM})
        item = InventoryRepository.get_item(self.db, item_id)
        if item is None:
            raise ValidationFailure(ITEM_NOT_FOUND)
        return item

    def _location(self, location_id: Optional[str], field: str = "location_id") -> InventoryLocation:
        if location_id is None:
            raise ValidationFailure(SELECT_LOCATION, field_errors={field: SELECT_LOCATION})
        location = InventoryRepository.get_location(self.db, location_id)
        if location is None:
            raise ValidationFailure(LOCATION_NOT_FOUND)
        return location

    def _partner(self, organization_id: Optional[int]) -> Organization:
        if organization_id is None:
            raise ValidationFailure(PARTNER_CONTEXT_MISSING)
        organization = OrganizationRepository.get_by_id(self.db, organization_id)
        if organization is None:
            raise ValidationFailure(PARTNER_NOT_FOUND)
        return organization

    def _append(self, access: AccessContext, **fields: Any) -> InventoryTransaction:
        transaction = InventoryTransaction(created_by=access.profile_id, **fields)
        self.db.add(transaction)
        return transaction

    def _decode_item(self, form: Any) -> Dict[str, Any]:
        return {
            "name": require_string(form, "name", ITEM_NAME_REQUIRED),
            "category": require_string(form, "category", CATEGORY_REQUIRED),
            "description": read_string(form, "description"),
            "unit_type": read_string(form, "unit_type"),
            "supplier": read_string(form, "supplier"),
            "minimum_threshold": read_number(form, "minimum_threshold", required=False),
            "cost_per_unit": read_number(form, "cost_per_unit", required=False),
            "active": read_boolean(form, "active", True),
        }

    def _decode_location(self, form: Any, exclude_id: Optional[str] = None) -> Dict[str, Any]:
        name = require_string(form, "name", LOCATION_NAME_REQUIRED)
        code = require_string(form, "code", LOCATION_CODE_REQUIRED)
        if InventoryRepository.find_location_by_code(self.db, code, exclude_id=exclude_id):
            raise ValidationFailure(LOCATION_CODE_TAKEN, field_errors={"code": LOCATION_CODE_TAKEN})
        return {
            "name": name,
            "code": code,
            "type": read_string(form, "type"),
            "address": read_string(form, "address"),
            "active": read_boolean(form, "active", True),
        }

    def _decode_partner(self, form: Any, exclude_id: Optional[int] = None) -> Dict[str, Any]:
        name = require_string(form, "name", PARTNER_NAME_REQUIRED)
        if OrganizationRepository.find_by_name(self.db, name, exclude_id=exclude_id):
            raise ValidationFailure(PARTNER_NAME_TAKEN, field_errors={"name": PARTNER_NAME_TAKEN})
        return {
            "name": name,
            "website": read_string(form, "website"),
            "email": read_string(form, "email"),
            "phone": read_string(form, "phone"),
            "notes": read_string(form, "notes"),
            "organization_type": read_enum(form, "organization_type", ORGANIZATION_TYPES),
            "partnership_type": read_enum(form, "partnership_type", PARTNERSHIP_TYPES),
        }

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------
    def create_item(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        fields = self._decode_item(form)

        initial_stock = read_number(form, "initial_stock", required=False)
        initial_location = None
        if initial_stock:
            initial_location_id = read_string(form, "initial_location_id")
            if initial_location_id is None:
                raise ValidationFailure(
                    INITIAL_LOCATION_REQUIRED,
                    field_errors={"initial_location_id": INITIAL_LOCATION_REQUIRED},
                )
            initial_location = self._location(initial_location_id, field="initial_location_id")

        item = InventoryItem(created_by=access.profile_id, updated_by=access.profile_id, **fields)
        self.db.add(item)
        self.db.flush()

        if initial_location is not None:
            self._append(
                access,
                item_id=item.id,
                location_id=initial_location.id,
                qty=initial_stock,
                ref_type="receipt",
                unit_cost=fields["cost_per_unit"],
                notes=read_string(form, "initial_stock_notes"),
                source_type="initial_stock",
            )
            self.db.flush()

        return MutationOutcome(
            action="inventory_item_created",
            entity_ref=item_ref(item.id),
            meta={
                "name": item.name,
                "category": item.category,
                "initial_stock": initial_stock or 0,
                "initial_location_id": initial_location.id if initial_location else None,
            },
            paths=[surface.inventory_path],
            message="Item created.",
            data={"item_id": item.id},
        )

    def update_item(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        item_id = read_string(form, "item_id")
        if item_id is None:
            raise ValidationFailure(ITEM_CONTEXT_MISSING)
        item = self._item(item_id)
        fields = self._decode_item(form)

        for key, value in fields.items():
            setattr(item, key, value)
        item.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="inventory_item_updated",
            entity_ref=item_ref(item.id),
            meta={"name": item.name, "category": item.category, "active": item.active},
            paths=[surface.inventory_path],
            message="Item updated.",
        )

    def toggle_item(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        item = self._item(read_string(form, "item_id"))
        active = read_boolean(form, "active", False)

        item.active = active
        item.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="inventory_item_activated" if active else "inventory_item_deactivated",
            entity_ref=item_ref(item.id),
            meta={"active": active},
            paths=[surface.inventory_path],
            message="Item activated." if active else "Item deactivated.",
        )

    def delete_item(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        item = self._item(read_string(form, "item_id"))

        if InventoryRepository.count_item_transactions(self.db, item.id):
            raise IntegrityFailure(ITEM_HAS_HISTORY)

        item_id, name = item.id, item.name
        try:
            self.db.delete(item)
            self.db.flush()
        except IntegrityError as e:
            logger.warning(f"Delete of inventory item {item_id} rejected by the database: {e}")
            raise IntegrityFailure(ITEM_HAS_HISTORY)

        return MutationOutcome(
            action="inventory_item_deleted",
            entity_ref=item_ref(item_id),
            meta={"name": name},
            paths=[surface.inventory_path],
            message="Item deleted.",
        )

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------
    def create_location(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        fields = self._decode_location(form)

        location = InventoryLocation(created_by=access.profile_id, updated_by=access.profile_id, **fields)
        self.db.add(location)
        self.db.flush()

        return MutationOutcome(
            action="inventory_location_created",
            entity_ref=location_ref(location.id),
            meta={"name": location.name, "code": location.code},
            paths=[surface.inventory_path],
            message="Location created.",
            data={"location_id": location.id},
        )

    def update_location(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        location_id = read_string(form, "location_id")
        if location_id is None:
            raise ValidationFailure(LOCATION_CONTEXT_MISSING)
        location = self._location(location_id)
        fields = self._decode_location(form, exclude_id=location.id)

        for key, value in fields.items():
            setattr(location, key, value)
        location.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="inventory_location_updated",
            entity_ref=location_ref(location.id),
            meta={"name": location.name, "code": location.code, "active": location.active},
            paths=[surface.inventory_path],
            message="Location updated.",
        )

    def toggle_location(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        location = self._location(read_string(form, "location_id"))
        active = read_boolean(form, "active", False)

        location.active = active
        location.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="inventory_location_activated" if active else "inventory_location_deactivated",
            entity_ref=location_ref(location.id),
            meta={"active": active},
            paths=[surface.inventory_path],
            message="Location activated." if active else "Location deactivated.",
        )

    def delete_location(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        location = self._location(read_string(form, "location_id"))

        if InventoryRepository.count_location_transactions(self.db, location.id):
            raise IntegrityFailure(LOCATION_HAS_STOCK)

        location_id, code = location.id, location.code
        try:
            self.db.delete(location)
            self.db.flush()
        except IntegrityError as e:
            logger.warning(f"Delete of inventory location {location_id} rejected by the database: {e}")
            raise IntegrityFailure(LOCATION_HAS_STOCK)

        return MutationOutcome(
            action="inventory_location_deleted",
            entity_ref=location_ref(location_id),
            meta={"code": code},
            paths=[surface.inventory_path],
            message="Location deleted.",
        )

    # ------------------------------------------------------------------
    # Partner organizations
    # ------------------------------------------------------------------
    def create_partner(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        fields = self._decode_partner(form)
        active = read_boolean(form, "is_active", True)

        organization = Organization(
            is_active=active,
            status="active" if active else "inactive",
            created_by=access.profile_id,
            updated_by=access.profile_id,
            **fields,
        )
        self.db.add(organization)
        self.db.flush()

        return MutationOutcome(
            action="inventory_organization_created",
            entity_ref=EntityRef("core", "organizations", organization.id),
            meta={"name": organization.name, "is_active": active},
            paths=[surface.inventory_path, surface.organizations_path],
            message="Organization created.",
            data={"organization_id": organization.id},
        )

    def update_partner(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        organization = self._authorize_partner(access, form)
        fields = self._decode_partner(form, exclude_id=organization.id)

        for key, value in fields.items():
            setattr(organization, key, value)
        organization.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="inventory_organization_updated",
            entity_ref=EntityRef("core", "organizations", organization.id),
            meta={"name": organization.name},
            paths=[surface.inventory_path, surface.organizations_path],
            message="Organization updated.",
        )

    def toggle_partner(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        organization = self._authorize_partner(access, form)
        active = read_boolean(form, "is_active", False)

        organization.is_active = active
        organization.status = "active" if active else "inactive"
        organization.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="inventory_organization_activated" if active else "inventory_organization_deactivated",
            entity_ref=EntityRef("core", "organizations", organization.id),
            meta={"is_active": active},
            paths=[surface.inventory_path, surface.organizations_path],
            message="Organization activated." if active else "Organization deactivated.",
        )

    # ------------------------------------------------------------------
    # Stock ledger
    # ------------------------------------------------------------------
    def receive_stock(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        item = self._item(read_string(form, "item_id"))
        location = self._location(read_string(form, "location_id"))
        quantity = positive_quantity(read_string(form, "quantity"))
        provider_org_id = read_int(form, "provider_org_id")
        if provider_org_id is not None:
            self._partner(provider_org_id)

        transaction = self._append(
            access,
            item_id=item.id,
            location_id=location.id,
            qty=quantity,
            ref_type="receipt",
            unit_cost=read_number(form, "unit_cost", required=False),
            notes=read_string(form, "notes"),
            source_type=read_string(form, "source_type"),
            provider_org_id=provider_org_id,
            lot_number=read_string(form, "lot_number"),
            expiry_date=parse_expiry(read_string(form, "expiry_date")),
        )
        self.db.flush()

        return MutationOutcome(
            action="inventory_stock_received",
            entity_ref=transaction_ref(transaction.id),
            meta={"item_id": item.id, "location_id": location.id, "quantity": quantity},
            paths=[surface.inventory_path],
            message="Stock received.",
        )

    def transfer_stock(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        item = self._item(read_string(form, "item_id"))
        source = self._location(read_string(form, "from_location_id"), field="from_location_id")
        destination = self._location(read_string(form, "to_location_id"), field="to_location_id")
        if source.id == destination.id:
            raise ValidationFailure(SAME_LOCATION, field_errors={"to_location_id": SAME_LOCATION})
        quantity = positive_quantity(read_string(form, "quantity"))

        if InventoryRepository.on_hand(self.db, item.id, source.id) < quantity:
            raise ValidationFailure(INSUFFICIENT_STOCK, field_errors={"quantity": INSUFFICIENT_STOCK})

        batch_id = str(uuid4())
        notes = read_string(form, "notes")
        outgoing = self._append(
            access,
            item_id=item.id,
            location_id=source.id,
            qty=-quantity,
            ref_type="transfer_out",
            batch_id=batch_id,
            notes=notes,
        )
        self._append(
            access,
            item_id=item.id,
            location_id=destination.id,
            qty=quantity,
            ref_type="transfer_in",
            batch_id=batch_id,
            notes=notes,
        )
        self.db.flush()

        return MutationOutcome(
            action="inventory_stock_transferred",
            entity_ref=transaction_ref(outgoing.id),
            meta={
                "item_id": item.id,
                "from_location_id": source.id,
                "to_location_id": destination.id,
                "quantity": quantity,
                "batch_id": batch_id,
            },
            paths=[surface.inventory_path],
            message="Stock transferred.",
        )

    def adjust_stock(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        self._authorize(access, form)
        item = self._item(read_string(form, "item_id"))
        location = self._location(read_string(form, "location_id"))
        delta = read_number(form, "quantity_delta", allow_negative=True)
        if delta == 0:
            raise ValidationFailure(ADJUSTMENT_ZERO, field_errors={"quantity_delta": ADJUSTMENT_ZERO})
        reason = require_string(form, "reason", REASON_REQUIRED)

        if InventoryRepository.on_hand(self.db, item.id, location.id) + delta < 0:
            raise ValidationFailure(NEGATIVE_STOCK, field_errors={"quantity_delta": NEGATIVE_STOCK})

        transaction = self._append(
            access,
            item_id=item.id,
            location_id=location.id,
            qty=delta,
            ref_type="adjustment",
            reason=reason,
            notes=read_string(form, "notes"),
        )
        self.db.flush()

        return MutationOutcome(
            action="inventory_stock_adjusted",
            entity_ref=transaction_ref(transaction.id),
            meta={"item_id": item.id, "location_id": location.id, "quantity_delta": delta, "reason": reason},
            paths=[surface.inventory_path],
            message="Stock adjusted.",
        )

    def bulk_receipt(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        """
        Receive many lines at once from a JSON `items` field.

        Every line is validated before anything is written; the batch succeeds
        or fails as a whole.
        """
        self._authorize(access, form)
        raw = read_raw(form, "items")
        try:
            lines = json.loads(raw) if raw else None
        except json.JSONDecodeError:
            raise ValidationFailure(INVALID_BULK_PAYLOAD, field_errors={"items": INVALID_BULK_PAYLOAD})
        if lines is not None and not isinstance(lines, list):
            raise ValidationFailure(INVALID_BULK_PAYLOAD, field_errors={"items": INVALID_BULK_PAYLOAD})
        if not lines:
            raise ValidationFailure(EMPTY_BULK_PAYLOAD, field_errors={"items": EMPTY_BULK_PAYLOAD})

        default_location_id = read_string(form, "location_id")
        source_type = read_string(form, "source_type")
        notes = read_string(form, "notes")
        provider_org_id = read_int(form, "provider_org_id")
        if provider_org_id is not None:
            self._partner(provider_org_id)

        prepared: List[Dict[str, Any]] = []
        for line in lines:
            if not isinstance(line, dict):
                raise ValidationFailure(INVALID_BULK_PAYLOAD, field_errors={"items": INVALID_BULK_PAYLOAD})
            item = self._item(_line_text(line, "item_id"))
            location = self._location(_line_text(line, "location_id") or default_location_id)
            unit_cost = line.get("unit_cost")
            prepared.append({
                "item_id": item.id,
                "location_id": location.id,
                "qty": positive_quantity(line.get("quantity")),
                "unit_cost": None if unit_cost in (None, "") else parse_number(unit_cost),
                "lot_number": _line_text(line, "lot_number"),
                "expiry_date": parse_expiry(_line_text(line, "expiry_date")),
            })

        batch_id = str(uuid4())
        for fields in prepared:
            self._append(
                access,
                ref_type="receipt",
                batch_id=batch_id,
                source_type=source_type,
                provider_org_id=provider_org_id,
                notes=notes,
                **fields,
            )
        self.db.flush()

        total = sum(fields["qty"] for fields in prepared)
        return MutationOutcome(
            action="inventory_bulk_receipt_processed",
            entity_ref=EntityRef("inventory", "transaction_batches", batch_id),
            meta={"line_count": len(prepared), "total_quantity": total, "provider_org_id": provider_org_id},
            paths=[surface.inventory_path],
            message=f"Received {len(prepared)} line(s).",
            data={"batch_id": batch_id, "received": len(prepared)},
        )


def _line_text(line: Dict[str, Any], key: str) -> Optional[str]:
    value = line.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None
