"""
Presentation surfaces.

The same services back three admin route trees plus the organization
workspace. A Surface only decides URL prefixes and which rendered paths
are invalidated after a mutation; authorization is identical everywhere.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Surface:
    name: str
    prefix: str
    organizations_path: str
    members_path: str
    invites_path: str
    settings_path: str
    inventory_path: str
    website_path: str

    def organization_detail_path(self, organization_id: int) -> str:
        return f"{self.organizations_path}/{organization_id}"


OPS_ADMIN = Surface(
    name="ops_admin",
    prefix="/ops/admin",
    organizations_path="/ops/admin/organizations",
    members_path="/ops/admin/users",
    invites_path="/ops/admin/invites",
    settings_path="/ops/admin/organizations",
    inventory_path="/ops/admin/inventory",
    website_path="/ops/admin/marketing",
)

PORTAL_ADMIN = Surface(
    name="admin",
    prefix="/admin",
    organizations_path="/admin/organizations",
    members_path="/admin/users",
    invites_path="/admin/invites",
    settings_path="/admin/organizations",
    inventory_path="/admin/inventory",
    website_path="/admin/marketing/footer",
)

APP_ADMIN = Surface(
    name="app_admin",
    prefix="/app-admin",
    organizations_path="/app-admin/organizations",
    members_path="/app-admin/users",
    invites_path="/app-admin/invites",
    settings_path="/app-admin/organizations",
    inventory_path="/app-admin/inventory",
    website_path="/app-admin/marketing",
)

ORG_WORKSPACE = Surface(
    name="org",
    prefix="/ops/org",
    organizations_path="/ops/org",
    members_path="/ops/org/members",
    invites_path="/ops/org/invites",
    settings_path="/ops/org/settings",
    inventory_path="/ops/inventory",
    website_path="/ops/org",
)

ADMIN_SURFACES = (OPS_ADMIN, PORTAL_ADMIN, APP_ADMIN)
