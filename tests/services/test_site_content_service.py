import pytest

from stevi.auth.access import AccessContext
from stevi.auth.gate import WEBSITE_ACCESS_REQUIRED
from stevi.errors import AuthorizationFailure, ValidationFailure
from stevi.models.audit_event import AuditEvent
from stevi.models.site_footer import SiteFooterSetting
from stevi.services.mutation_pipeline import MutationPipeline
from stevi.services.site_content_service import PRIMARY_TEXT_REQUIRED, SiteContentService
from stevi.surfaces import PORTAL_ADMIN


def test_footer_upsert_reuses_active_row(db, global_admin):
    service = SiteContentService(db)

    service.update_footer(global_admin, {"primary_text": "Call 211 for help."}, PORTAL_ADMIN)
    db.commit()
    service.update_footer(
        global_admin, {"primary_text": "Call 211.", "secondary_text": "Open 24/7"}, PORTAL_ADMIN
    )
    db.commit()

    footer = db.query(SiteFooterSetting).one()
    assert footer.slot == "public_marketing"
    assert footer.primary_text == "Call 211."
    assert footer.secondary_text == "Open 24/7"


def test_footer_audit_uses_site_footer_type(db, global_admin):
    service = SiteContentService(db)

    result = MutationPipeline(db, global_admin).run(
        "website.update_footer",
        lambda access: service.update_footer(access, {"primary_text": "Hello"}, PORTAL_ADMIN),
    )

    assert result.ok
    assert result.revalidated_paths == ["/admin", "/admin/marketing/footer"]
    event = db.query(AuditEvent).one()
    assert event.action == "marketing_footer_updated"
    assert event.entity_type == "site_footer"


def test_footer_requires_primary_text(db, global_admin):
    with pytest.raises(ValidationFailure) as exc:
        SiteContentService(db).update_footer(global_admin, {"primary_text": "  "}, PORTAL_ADMIN)

    assert exc.value.message == PRIMARY_TEXT_REQUIRED


def test_footer_needs_website_permission(db, make_org, make_profile, access_for):
    org = make_org()
    admin = access_for(make_profile(org, org_roles=("portal_org_admin",)))

    with pytest.raises(AuthorizationFailure) as exc:
        SiteContentService(db).update_footer(admin, {"primary_text": "Hi"}, PORTAL_ADMIN)

    assert exc.value.message == WEBSITE_ACCESS_REQUIRED


def test_footer_editor_with_explicit_permission(db):
    editor = AccessContext(
        user_id="u-editor",
        profile_id="p-editor",
        affiliation_status="approved",
        permissions=frozenset({"portal.manage_website"}),
    )

    outcome = SiteContentService(db).update_footer(editor, {"primary_text": "Hi", "slot": "landing"}, PORTAL_ADMIN)

    assert outcome.meta == {"slot": "landing", "has_secondary": False}
