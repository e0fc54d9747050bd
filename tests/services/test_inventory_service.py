import json
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from stevi.auth.gate import ACTOR_MISMATCH, INVENTORY_ADMIN_REQUIRED, TENANT_MISMATCH
from stevi.errors import AuthorizationFailure, IntegrityFailure, ValidationFailure
from stevi.models.audit_event import AuditEvent
from stevi.models.inventory import InventoryItem, InventoryLocation, InventoryTransaction
from stevi.models.organization import Organization
from stevi.repositories.inventory_repository import InventoryRepository
from stevi.services import inventory_service as inv
from stevi.services.inventory_service import InventoryService
from stevi.services.mutation_pipeline import MutationPipeline
from stevi.surfaces import OPS_ADMIN


@pytest.fixture
def inventory_admin(make_org, make_profile, access_for):
    org = make_org("Harbour Outreach")
    return access_for(make_profile(org, org_roles=("portal_org_admin",)))


def _create_item(db, name="Blankets", category="supplies"):
    item = InventoryItem(name=name, category=category, active=True)
    db.add(item)
    db.commit()
    return item


def _create_location(db, code="WH1", name="Warehouse"):
    location = InventoryLocation(name=name, code=code, active=True)
    db.add(location)
    db.commit()
    return location


def _receive(db, access, item, location, quantity):
    InventoryService(db).receive_stock(
        access, {"item_id": item.id, "location_id": location.id, "quantity": str(quantity)}, OPS_ADMIN
    )
    db.commit()


def test_org_rep_cannot_manage_inventory(db, make_org, make_profile, access_for):
    org = make_org()
    rep = access_for(make_profile(org, org_roles=("portal_org_rep",)))

    with pytest.raises(AuthorizationFailure) as exc:
        InventoryService(db).create_item(rep, {"name": "Socks", "category": "clothing"}, OPS_ADMIN)

    assert exc.value.message == INVENTORY_ADMIN_REQUIRED


def test_actor_profile_must_match_session(db, inventory_admin):
    with pytest.raises(AuthorizationFailure) as exc:
        InventoryService(db).create_item(
            inventory_admin, {"name": "Socks", "category": "clothing", "actor_profile_id": "someone-else"}, OPS_ADMIN
        )

    assert exc.value.message == ACTOR_MISMATCH


def test_create_item_with_initial_stock(db, inventory_admin):
    location = _create_location(db)
    service = InventoryService(db)
    form = {
        "name": "Socks",
        "category": "clothing",
        "cost_per_unit": "1.25",
        "initial_stock": "40",
        "initial_location_id": location.id,
        "actor_profile_id": inventory_admin.profile_id,
    }

    result = MutationPipeline(db, inventory_admin).run(
        "inventory.create_item", lambda access: service.create_item(access, form, OPS_ADMIN)
    )

    assert result.ok
    item_id = result.data["item_id"]
    assert InventoryRepository.on_hand(db, item_id, location.id) == 40
    transaction = db.query(InventoryTransaction).one()
    assert transaction.ref_type == "receipt"
    assert transaction.unit_cost == 1.25
    assert db.query(AuditEvent).one().action == "inventory_item_created"


def test_initial_stock_needs_location(db, inventory_admin):
    with pytest.raises(ValidationFailure) as exc:
        InventoryService(db).create_item(
            inventory_admin, {"name": "Socks", "category": "clothing", "initial_stock": "5"}, OPS_ADMIN
        )

    assert exc.value.message == inv.INITIAL_LOCATION_REQUIRED


def test_item_requires_category(db, inventory_admin):
    with pytest.raises(ValidationFailure) as exc:
        InventoryService(db).create_item(inventory_admin, {"name": "Socks"}, OPS_ADMIN)

    assert exc.value.field_errors == {"category": inv.CATEGORY_REQUIRED}


def test_toggle_item(db, inventory_admin):
    item = _create_item(db)

    outcome = InventoryService(db).toggle_item(inventory_admin, {"item_id": item.id, "active": "false"}, OPS_ADMIN)
    db.commit()
    db.refresh(item)

    assert item.active is False
    assert outcome.action == "inventory_item_deactivated"


def test_receive_rejects_non_positive_quantity(db, inventory_admin):
    item = _create_item(db)
    location = _create_location(db)

    for quantity in ("0", "-3"):
        with pytest.raises(ValidationFailure):
            InventoryService(db).receive_stock(
                inventory_admin, {"item_id": item.id, "location_id": location.id, "quantity": quantity}, OPS_ADMIN
            )


def test_receive_rejects_bad_expiry(db, inventory_admin):
    item = _create_item(db)
    location = _create_location(db)

    with pytest.raises(ValidationFailure) as exc:
        InventoryService(db).receive_stock(
            inventory_admin,
            {"item_id": item.id, "location_id": location.id, "quantity": "1", "expiry_date": "31/12/2026"},
            OPS_ADMIN,
        )

    assert exc.value.message == inv.INVALID_EXPIRY


def test_transfer_moves_stock_in_one_batch(db, inventory_admin):
    item = _create_item(db)
    source = _create_location(db, code="WH1")
    destination = _create_location(db, code="VAN", name="Outreach van")
    _receive(db, inventory_admin, item, source, 10)

    InventoryService(db).transfer_stock(
        inventory_admin,
        {"item_id": item.id, "from_location_id": source.id, "to_location_id": destination.id, "quantity": "4"},
        OPS_ADMIN,
    )
    db.commit()

    assert InventoryRepository.on_hand(db, item.id, source.id) == 6
    assert InventoryRepository.on_hand(db, item.id, destination.id) == 4
    rows = db.query(InventoryTransaction).filter(InventoryTransaction.ref_type.in_(["transfer_out", "transfer_in"])).all()
    assert len(rows) == 2
    assert rows[0].batch_id == rows[1].batch_id


def test_transfer_rejects_insufficient_stock(db, inventory_admin):
    item = _create_item(db)
    source = _create_location(db, code="WH1")
    destination = _create_location(db, code="VAN")
    _receive(db, inventory_admin, item, source, 2)

    with pytest.raises(ValidationFailure) as exc:
        InventoryService(db).transfer_stock(
            inventory_admin,
            {"item_id": item.id, "from_location_id": source.id, "to_location_id": destination.id, "quantity": "3"},
            OPS_ADMIN,
        )

    assert exc.value.message == inv.INSUFFICIENT_STOCK


def test_transfer_rejects_same_location(db, inventory_admin):
    item = _create_item(db)
    location = _create_location(db)

    with pytest.raises(ValidationFailure) as exc:
        InventoryService(db).transfer_stock(
            inventory_admin,
            {"item_id": item.id, "from_location_id": location.id, "to_location_id": location.id, "quantity": "1"},
            OPS_ADMIN,
        )

    assert exc.value.message == inv.SAME_LOCATION


def test_adjust_requires_reason_and_keeps_stock_non_negative(db, inventory_admin):
    item = _create_item(db)
    location = _create_location(db)
    _receive(db, inventory_admin, item, location, 5)
    service = InventoryService(db)

    with pytest.raises(ValidationFailure) as exc:
        service.adjust_stock(inventory_admin, {"item_id": item.id, "location_id": location.id, "quantity_delta": "-1"}, OPS_ADMIN)
    assert exc.value.message == inv.REASON_REQUIRED

    with pytest.raises(ValidationFailure) as exc:
        service.adjust_stock(
            inventory_admin,
            {"item_id": item.id, "location_id": location.id, "quantity_delta": "-6", "reason": "count"},
            OPS_ADMIN,
        )
    assert exc.value.message == inv.NEGATIVE_STOCK

    service.adjust_stock(
        inventory_admin,
        {"item_id": item.id, "location_id": location.id, "quantity_delta": "-2", "reason": "damaged"},
        OPS_ADMIN,
    )
    db.commit()
    assert InventoryRepository.on_hand(db, item.id, location.id) == 3


def test_bulk_receipt_is_all_or_nothing(db, inventory_admin):
    item = _create_item(db)
    location = _create_location(db)
    service = InventoryService(db)
    lines = [
        {"item_id": item.id, "quantity": 3},
        {"item_id": item.id, "quantity": "0"},
    ]

    result = MutationPipeline(db, inventory_admin).run(
        "inventory.bulk_receipt",
        lambda access: service.bulk_receipt(access, {"items": json.dumps(lines), "location_id": location.id}, OPS_ADMIN),
    )

    assert result.failure.value == "validation"
    assert db.query(InventoryTransaction).count() == 0


def test_bulk_receipt_records_one_batch(db, inventory_admin):
    item = _create_item(db)
    other_item = _create_item(db, name="Water")
    location = _create_location(db)
    lines = [
        {"item_id": item.id, "quantity": 3, "lot_number": "L-1"},
        {"item_id": other_item.id, "quantity": "2.5", "expiry_date": "2027-01-31"},
    ]

    outcome = InventoryService(db).bulk_receipt(
        inventory_admin, {"items": json.dumps(lines), "location_id": location.id}, OPS_ADMIN
    )
    db.commit()

    assert outcome.data["received"] == 2
    assert outcome.meta["total_quantity"] == 5.5
    batch_ids = {row.batch_id for row in db.query(InventoryTransaction).all()}
    assert batch_ids == {outcome.data["batch_id"]}


@pytest.mark.parametrize("payload", ["not json", json.dumps({"item_id": "x"}), json.dumps(["x"])])
def test_bulk_receipt_rejects_bad_payload(db, inventory_admin, payload):
    with pytest.raises(ValidationFailure) as exc:
        InventoryService(db).bulk_receipt(inventory_admin, {"items": payload}, OPS_ADMIN)

    assert exc.value.message == inv.INVALID_BULK_PAYLOAD


def test_delete_blocked_by_ledger_history(db, inventory_admin):
    item = _create_item(db)
    location = _create_location(db)
    _receive(db, inventory_admin, item, location, 1)
    service = InventoryService(db)

    with pytest.raises(IntegrityFailure):
        service.delete_item(inventory_admin, {"item_id": item.id}, OPS_ADMIN)
    with pytest.raises(IntegrityFailure):
        service.delete_location(inventory_admin, {"location_id": location.id}, OPS_ADMIN)


def test_delete_unused_location(db, inventory_admin):
    location = _create_location(db)

    InventoryService(db).delete_location(inventory_admin, {"location_id": location.id}, OPS_ADMIN)
    db.commit()

    assert db.query(InventoryLocation).count() == 0


def test_location_code_must_be_unique(db, inventory_admin):
    _create_location(db, code="WH1")

    with pytest.raises(ValidationFailure) as exc:
        InventoryService(db).create_location(inventory_admin, {"name": "Second", "code": "wh1"}, OPS_ADMIN)

    assert exc.value.message == inv.LOCATION_CODE_TAKEN


def test_partner_lifecycle(db, inventory_admin, global_admin):
    service = InventoryService(db)

    created = service.create_partner(inventory_admin, {"name": "Grocer Co-op", "partnership_type": "resource_partner"}, OPS_ADMIN)
    db.commit()
    organization_id = created.data["organization_id"]

    service.toggle_partner(global_admin, {"organization_id": str(organization_id), "is_active": "false"}, OPS_ADMIN)
    db.commit()

    partner = db.query(Organization).filter(Organization.id == organization_id).one()
    assert partner.is_active is False
    assert partner.status == "inactive"


@pytest.mark.parametrize("method_name, form", [
    ("update_partner", {"name": "Renamed Food Bank"}),
    ("toggle_partner", {"is_active": "false"}),
])
def test_org_admin_cannot_edit_another_tenants_organization(db, make_org, inventory_admin, method_name, form):
    other = make_org("Community Food Bank")
    service = InventoryService(db)
    handler = getattr(service, method_name)
    form = dict(form, organization_id=str(other.id))

    result = MutationPipeline(db, inventory_admin).run(
        f"inventory.{method_name}", lambda access: handler(access, form, OPS_ADMIN)
    )

    assert result.failure.value == "unauthorized"
    assert result.message == TENANT_MISMATCH
    db.refresh(other)
    assert other.name == "Community Food Bank"
    assert other.status == "active"
    assert other.is_active is True
    assert db.query(AuditEvent).count() == 0


def test_org_admin_can_update_own_organization_record(db, inventory_admin):
    own_id = inventory_admin.organization_id
    form = {"organization_id": str(own_id), "name": "Harbour Outreach", "phone": "555-0100"}

    outcome = InventoryService(db).update_partner(inventory_admin, form, OPS_ADMIN)
    db.commit()

    assert outcome.action == "inventory_organization_updated"
    assert db.query(Organization).filter(Organization.id == own_id).one().phone == "555-0100"


def test_bulk_receipt_audits_the_batch(db, inventory_admin):
    item = _create_item(db)
    location = _create_location(db)
    service = InventoryService(db)
    form = {"items": json.dumps([{"item_id": item.id, "quantity": 2}]), "location_id": location.id}

    result = MutationPipeline(db, inventory_admin).run(
        "inventory.bulk_receipt", lambda access: service.bulk_receipt(access, form, OPS_ADMIN)
    )

    assert result.ok
    event = db.query(AuditEvent).one()
    assert event.entity_type == "inventory.transaction_batches"
    assert event.entity_id == result.data["batch_id"]


@pytest.mark.parametrize("method_name, count_name, field, message", [
    ("delete_item", "count_item_transactions", "item_id", inv.ITEM_HAS_HISTORY),
    ("delete_location", "count_location_transactions", "location_id", inv.LOCATION_HAS_STOCK),
])
def test_delete_maps_database_integrity_error(db, inventory_admin, method_name, count_name, field, message):
    item = _create_item(db)
    location = _create_location(db)
    target_id = item.id if field == "item_id" else location.id
    service = InventoryService(db)
    handler = getattr(service, method_name)
    violation = IntegrityError("DELETE", {}, Exception("FOREIGN KEY constraint failed"))

    with patch.object(InventoryRepository, count_name, return_value=0), \
            patch.object(db, "flush", side_effect=violation):
        result = MutationPipeline(db, inventory_admin).run(
            f"inventory.{method_name}", lambda access: handler(access, {field: target_id}, OPS_ADMIN)
        )

    assert result.failure.value == "integrity"
    assert result.message == message
    assert db.query(InventoryItem).count() == 1
    assert db.query(InventoryLocation).count() == 1
