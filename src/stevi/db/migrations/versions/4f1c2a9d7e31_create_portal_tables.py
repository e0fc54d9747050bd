"""Create portal tables

Organizations, profiles and role grants, invites, the audit log, the
rate-limit event table, inventory (items, locations, append-only ledger)
and site footer settings.

Revision ID: 4f1c2a9d7e31
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2a9d7e31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _attribution():
    return [
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('updated_by', sa.String(length=36), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='active'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('organization_type', sa.String(length=50), nullable=True),
        sa.Column('partnership_type', sa.String(length=50), nullable=True),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('services_provided', sa.Text(), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('province', sa.String(length=100), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('contact_title', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=50), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('operating_hours', sa.Text(), nullable=True),
        sa.Column('availability_notes', sa.Text(), nullable=True),
        sa.Column('referral_process', sa.Text(), nullable=True),
        sa.Column('special_requirements', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('services_tags', sa.JSON(), nullable=True),
        *_timestamps(),
        *_attribution(),
    )
    op.create_index('ix_organizations_name', 'organizations', ['name'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('position_title', sa.String(length=255), nullable=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('affiliation_status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('affiliation_reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('affiliation_reviewed_by', sa.String(length=36), nullable=True),
        sa.Column('claims', sa.JSON(), nullable=True),
        sa.Column('claims_refreshed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_profiles_user_id', 'profiles', ['user_id'], unique=True)
    op.create_index('ix_profiles_organization_id', 'profiles', ['organization_id'])

    op.create_table(
        'user_global_roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('profile_id', sa.String(length=36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('role_name', sa.String(length=100), nullable=False),
        sa.Column('granted_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('profile_id', 'role_name', name='uq_user_global_roles_profile_role'),
    )
    op.create_index('ix_user_global_roles_profile_id', 'user_global_roles', ['profile_id'])

    op.create_table(
        'org_roles',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('organization_id', 'name', name='uq_org_roles_org_name'),
    )
    op.create_index('ix_org_roles_organization_id', 'org_roles', ['organization_id'])

    op.create_table(
        'user_org_roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('profile_id', sa.String(length=36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('org_role_id', sa.String(length=36), sa.ForeignKey('org_roles.id'), nullable=False),
        sa.Column('granted_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('profile_id', 'organization_id', 'org_role_id', name='uq_user_org_roles_grant'),
    )
    op.create_index('ix_user_org_roles_profile_id', 'user_org_roles', ['profile_id'])
    op.create_index('ix_user_org_roles_organization_id', 'user_org_roles', ['organization_id'])

    op.create_table(
        'profile_invites',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('position_title', sa.String(length=255), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('affiliation_type', sa.String(length=50), nullable=False, server_default='agency_partner'),
        sa.Column('invited_by_profile_id', sa.String(length=36), nullable=True),
        sa.Column('invited_by_user_id', sa.String(length=255), nullable=True),
        sa.Column('token', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_profile_invites_email', 'profile_invites', ['email'])
    op.create_index('ix_profile_invites_token', 'profile_invites', ['token'], unique=True)
    op.create_index('ix_profile_invites_organization_id', 'profile_invites', ['organization_id'])
    op.create_index('ix_profile_invites_org_status', 'profile_invites', ['organization_id', 'status'])

    op.create_table(
        'organization_people',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('person_id', sa.Integer(), nullable=False),
        sa.Column('relationship_type', sa.String(length=50), nullable=True),
        *_timestamps(),
        *_attribution(),
    )
    op.create_index('ix_organization_people_organization_id', 'organization_people', ['organization_id'])
    op.create_index('ix_organization_people_person_id', 'organization_people', ['person_id'])

    # Append-only: the application never updates or deletes audit rows
    op.create_table(
        'audit_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('actor_profile_id', sa.String(length=36), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_ref', sa.JSON(), nullable=False),
        sa.Column('entity_id', sa.String(length=255), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_audit_events_actor_profile_id', 'audit_events', ['actor_profile_id'])
    op.create_index('ix_audit_events_action', 'audit_events', ['action'])
    op.create_index('ix_audit_events_entity', 'audit_events', ['entity_type', 'entity_id'])

    op.create_table(
        'rate_limit_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_type', sa.String(length=100), nullable=False),
        sa.Column('actor_key', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        'ix_rate_limit_events_lookup', 'rate_limit_events', ['event_type', 'actor_key', 'created_at']
    )

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('unit_type', sa.String(length=50), nullable=True),
        sa.Column('supplier', sa.String(length=255), nullable=True),
        sa.Column('minimum_threshold', sa.Float(), nullable=True),
        sa.Column('cost_per_unit', sa.Float(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
        *_attribution(),
    )

    op.create_table(
        'inventory_locations',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False, unique=True),
        sa.Column('type', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
        *_attribution(),
    )

    op.create_table(
        'inventory_transactions',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('item_id', sa.String(length=36), sa.ForeignKey('inventory_items.id'), nullable=False),
        sa.Column('location_id', sa.String(length=36), sa.ForeignKey('inventory_locations.id'), nullable=False),
        sa.Column('qty', sa.Float(), nullable=False),
        sa.Column('ref_type', sa.String(length=50), nullable=False),
        sa.Column('batch_id', sa.String(length=36), nullable=True),
        sa.Column('unit_cost', sa.Float(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('source_type', sa.String(length=50), nullable=True),
        sa.Column('provider_org_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('lot_number', sa.String(length=100), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_inventory_transactions_item_id', 'inventory_transactions', ['item_id'])
    op.create_index('ix_inventory_transactions_location_id', 'inventory_transactions', ['location_id'])
    op.create_index('ix_inventory_transactions_batch_id', 'inventory_transactions', ['batch_id'])
    op.create_index(
        'ix_inventory_transactions_item_location', 'inventory_transactions', ['item_id', 'location_id']
    )

    op.create_table(
        'site_footer_settings',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('slot', sa.String(length=100), nullable=False),
        sa.Column('primary_text', sa.Text(), nullable=False),
        sa.Column('secondary_text', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
        *_attribution(),
    )
    op.create_index('ix_site_footer_settings_slot', 'site_footer_settings', ['slot'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('site_footer_settings')
    op.drop_table('inventory_transactions')
    op.drop_table('inventory_locations')
    op.drop_table('inventory_items')
    op.drop_table('rate_limit_events')
    op.drop_table('audit_events')
    op.drop_table('organization_people')
    op.drop_table('profile_invites')
    op.drop_table('user_org_roles')
    op.drop_table('org_roles')
    op.drop_table('user_global_roles')
    op.drop_table('profiles')
    op.drop_table('organizations')
