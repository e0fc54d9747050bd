"""
Public website content managed from the admin surfaces.
"""
from typing import Any
import logging

from sqlalchemy.orm import Session

from stevi.auth.access import AccessContext
from stevi.auth.gate import Action, ensure_actor_matches, ensure_allowed
from stevi.models.site_footer import SiteFooterSetting
from stevi.services.audit_service import EntityRef
from stevi.services.form_decoder import read_string, require_string
from stevi.services.mutation_pipeline import MutationOutcome
from stevi.surfaces import Surface

logger = logging.getLogger(__name__)

DEFAULT_FOOTER_SLOT = "public_marketing"
PRIMARY_TEXT_REQUIRED = "Add the primary footer text."


class SiteContentService:
    def __init__(self, db: Session):
        self.db = db

    def update_footer(self, access: AccessContext, form: Any, surface: Surface) -> MutationOutcome:
        """Upsert the active footer for a slot."""
        ensure_allowed(access, Action.WEBSITE_MANAGE)
        ensure_actor_matches(access, read_string(form, "actor_profile_id"))

        slot = read_string(form, "slot") or DEFAULT_FOOTER_SLOT
        primary_text = require_string(form, "primary_text", PRIMARY_TEXT_REQUIRED)
        secondary_text = read_string(form, "secondary_text")

        footer = (
            self.db.query(SiteFooterSetting)
            .filter(SiteFooterSetting.slot == slot, SiteFooterSetting.is_active.is_(True))
            .order_by(SiteFooterSetting.updated_at.desc(), SiteFooterSetting.created_at.desc())
            .first()
        )
        if footer is None:
            footer = SiteFooterSetting(slot=slot, created_by=access.profile_id)
            self.db.add(footer)

        footer.primary_text = primary_text
        footer.secondary_text = secondary_text
        footer.is_active = True
        footer.updated_by = access.profile_id
        self.db.flush()

        return MutationOutcome(
            action="marketing_footer_updated",
            entity_ref=EntityRef("portal", "site_footer_settings", footer.id),
            entity_type="site_footer",
            meta={"slot": slot, "has_secondary": bool(secondary_text)},
            paths=[surface.prefix, surface.website_path],
            message="Footer updated.",
        )
