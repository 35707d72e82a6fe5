"""initial schema: staff, leads, activities, inbound messages

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

The partial UNIQUE index ``uq_leads_email`` only covers non-blank emails.
Leads without an email are matched on phone at the application level and
may legitimately share the empty string.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_SOURCES = "('comparemymove', 'reallymoving', 'getamover', 'website', 'manual')"
_STATUSES = (
    "('pending', 'new', 'contacted', 'qualified', 'proposal', 'won', 'lost', "
    "'rejected')"
)


def upgrade() -> None:
    op.create_table(
        "staff_members",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String, nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="staff"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('admin', 'staff')", name="ck_staff_role"),
    )

    op.create_table(
        "leads",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "assigned_to_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("staff_members.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("email", sa.String, nullable=False, server_default=""),
        sa.Column("phone", sa.String, nullable=False, server_default=""),
        sa.Column("first_name", sa.String, nullable=False),
        sa.Column("last_name", sa.String, nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "contact_status",
            sa.String(20),
            nullable=False,
            server_default="not_contacted",
        ),
        sa.Column("source", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("external_ref", sa.String),
        sa.Column("move_date", sa.Date),
        sa.Column("from_address", sa.String(255)),
        sa.Column("from_postcode", sa.String),
        sa.Column("from_property_type", sa.String),
        sa.Column("to_address", sa.String(255)),
        sa.Column("to_postcode", sa.String),
        sa.Column("to_property_type", sa.String),
        sa.Column("bedrooms", sa.Integer),
        sa.Column("distance_miles", sa.Integer),
        sa.Column(
            "packing_required", sa.Boolean, nullable=False, server_default="false"
        ),
        sa.Column(
            "cleaning_required", sa.Boolean, nullable=False, server_default="false"
        ),
        sa.Column("notes", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(f"status IN {_STATUSES}", name="ck_lead_status"),
        sa.CheckConstraint(f"source IN {_SOURCES}", name="ck_lead_source"),
        sa.CheckConstraint(
            "bedrooms IS NULL OR bedrooms >= 0", name="ck_lead_bedrooms_nonneg"
        ),
    )
    op.create_index(
        "uq_leads_email",
        "leads",
        ["email"],
        unique=True,
        postgresql_where=sa.text("email <> ''"),
    )
    op.create_index("idx_leads_phone", "leads", ["phone"])
    op.create_index("idx_leads_status", "leads", ["status"])
    op.create_index("idx_leads_from_postcode", "leads", ["from_postcode"])
    op.create_index("idx_leads_assigned_status", "leads", ["assigned_to_id", "status"])

    op.create_table(
        "activities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("leads.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "staff_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("staff_members.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("metadata", postgresql.JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "idx_activities_lead_created", "activities", ["lead_id", "created_at"]
    )

    op.create_table(
        "inbound_messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("message_id", sa.String(255), unique=True),
        sa.Column("sender_address", sa.String(320), nullable=False),
        sa.Column("subject", sa.String(998), nullable=False, server_default=""),
        sa.Column("plain_body", sa.Text, nullable=False, server_default=""),
        sa.Column("html_body", sa.Text),
        sa.Column("received_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("leads.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "idx_inbound_messages_unlinked",
        "inbound_messages",
        ["received_at"],
        postgresql_where=sa.text("lead_id IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("idx_inbound_messages_unlinked", table_name="inbound_messages")
    op.drop_table("inbound_messages")
    op.drop_index("idx_activities_lead_created", table_name="activities")
    op.drop_table("activities")
    op.drop_index("idx_leads_assigned_status", table_name="leads")
    op.drop_index("idx_leads_from_postcode", table_name="leads")
    op.drop_index("idx_leads_status", table_name="leads")
    op.drop_index("idx_leads_phone", table_name="leads")
    op.drop_index("uq_leads_email", table_name="leads")
    op.drop_table("leads")
    op.drop_table("staff_members")
