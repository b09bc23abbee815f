"""location access schema

Revision ID: 20261019_location_access
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the login geofencing schema:
- organizations: mirror of the directory's organizations
- location_access_requests: requests to make an address a login zone
- allowed_locations: zones materialized from approved requests
- organization_location_policies: per-organization enforcement settings
- location_audit_events: append-only audit trail
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_location_access"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_organizations"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("organizations", schema=None) as batch_op:
        batch_op.create_index("ix_organizations_code", ["code"], unique=True)
        batch_op.create_index("ix_organizations_is_active", ["is_active"], unique=False)

    op.create_table(
        "location_access_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("requested_radius_meters", sa.Integer(), nullable=False),
        sa.Column("request_type", sa.String(16), nullable=False, server_default="permanent"),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_to", sa.DateTime(timezone=True), nullable=True),
        sa.Column("emergency", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("review_comments", sa.Text(), nullable=True),
        sa.Column("requested_by", sa.String(64), nullable=True),
        sa.Column("reviewed_by", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("stopped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], name="fk_location_access_requests_org_id_organizations"),
        sa.PrimaryKeyConstraint("id", name="pk_location_access_requests"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("location_access_requests", schema=None) as batch_op:
        batch_op.create_index("ix_location_access_requests_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_location_access_requests_status", ["status"], unique=False)
        batch_op.create_index("ix_location_requests_org_status", ["org_id", "status"], unique=False)
        batch_op.create_index("ix_location_requests_org_created", ["org_id", "created_at"], unique=False)

    # source_request_id is a plain column, zones outlive their requests
    op.create_table(
        "allowed_locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("source_request_id", sa.Integer(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("radius_meters", sa.Integer(), nullable=False),
        sa.Column("request_type", sa.String(16), nullable=False, server_default="permanent"),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column("valid_to", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], name="fk_allowed_locations_org_id_organizations"),
        sa.PrimaryKeyConstraint("id", name="pk_allowed_locations"),
        sa.UniqueConstraint("source_request_id", name="uq_allowed_locations_source_request"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("allowed_locations", schema=None) as batch_op:
        batch_op.create_index("ix_allowed_locations_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_allowed_locations_source_request_id", ["source_request_id"], unique=False)
        batch_op.create_index("ix_allowed_locations_is_active", ["is_active"], unique=False)
        batch_op.create_index("ix_allowed_locations_org_active", ["org_id", "is_active"], unique=False)

    op.create_table(
        "organization_location_policies",
        sa.Column("org_id", sa.Integer(), nullable=False),
        sa.Column("enforce", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("default_radius_meters", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], name="fk_organization_location_policies_org_id_organizations"),
        sa.PrimaryKeyConstraint("org_id", name="pk_organization_location_policies"),
    )

    op.create_table(
        "location_audit_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("org_id", sa.Integer(), nullable=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("entity_type", sa.String(32), nullable=True),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("role", sa.String(32), nullable=True),
        sa.Column("decision", sa.String(8), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_location_audit_events"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("location_audit_events", schema=None) as batch_op:
        batch_op.create_index("ix_location_audit_events_org_id", ["org_id"], unique=False)
        batch_op.create_index("ix_location_audit_events_event_type", ["event_type"], unique=False)
        batch_op.create_index("ix_location_audit_events_occurred_at", ["occurred_at"], unique=False)
        batch_op.create_index("ix_location_audit_org_occurred", ["org_id", "occurred_at"], unique=False)
        batch_op.create_index("ix_location_audit_entity", ["entity_type", "entity_id"], unique=False)


def downgrade():
    op.drop_table("location_audit_events")
    op.drop_table("organization_location_policies")
    op.drop_table("allowed_locations")
    op.drop_table("location_access_requests")
    op.drop_table("organizations")
