from stevi.api.responses import to_response
from stevi.results import ActionResult, FailureKind
from stevi.services.view_invalidation import ViewInvalidator


def test_invalidate_all_deduplicates_in_order():
    invalidator = ViewInvalidator()

    paths = invalidator.invalidate_all(["/ops/admin/organizations", "/ops/admin/organizations/3", "/ops/admin/organizations"])

    assert paths == ["/ops/admin/organizations", "/ops/admin/organizations/3"]


def test_to_response_status_codes():
    created = to_response(ActionResult.success("organization.create", message="Organization created."), created=True)
    failed_create = to_response(
        ActionResult.error("organization.create", FailureKind.VALIDATION, "Organization name is required."),
        created=True,
    )
    backend = to_response(ActionResult.error("organization.update", FailureKind.BACKEND, "Unable to complete action. Try again shortly."))

    assert created.status_code == 201
    assert failed_create.status_code == 400
    assert backend.status_code == 500


def test_to_response_retry_after_rounds_up():
    result = ActionResult.error("invite.create", FailureKind.RATE_LIMITED, "Invite limit reached.", retry_in_ms=125_000)

    response = to_response(result)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "125"
