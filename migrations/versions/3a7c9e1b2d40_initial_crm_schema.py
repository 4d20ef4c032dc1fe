"""initial crm schema

Revision ID: 3a7c9e1b2d40
Revises:
Create Date: 2026-10-18 09:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3a7c9e1b2d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, customers (+ images/copywritings), manual_sections and audit_events."""
    # Check if tables already exist (idempotent)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("username", sa.String(150), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("role", sa.String(32), nullable=False, server_default="admin"),
            sa.Column("can_view_all", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("creator_id", sa.String(64), nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("contact_info", sa.Text(), nullable=False, server_default=""),
            sa.Column("platform", sa.String(32), nullable=False),
            sa.Column("deal_date", sa.DateTime(), nullable=True),
            sa.Column("expiry_date", sa.DateTime(), nullable=True),
            sa.Column("last_tracked_date", sa.DateTime(), nullable=False),
            sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        )
        op.create_index("idx_customers_creator_id", "customers", ["creator_id"])
        op.create_index("idx_customers_platform", "customers", ["platform"])

    if "customer_images" not in existing_tables:
        op.create_table(
            "customer_images",
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("customer_id", sa.String(64), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("url", sa.Text(), nullable=False),
            sa.Column("is_ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("idx_customer_images_customer_id", "customer_images", ["customer_id", "position"])

    if "customer_copywritings" not in existing_tables:
        op.create_table(
            "customer_copywritings",
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("customer_id", sa.String(64), sa.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("is_ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("model_used", sa.String(64), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index(
            "idx_customer_copywritings_customer_id", "customer_copywritings", ["customer_id", "position"]
        )

    if "manual_sections" not in existing_tables:
        op.create_table(
            "manual_sections",
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("platform", sa.String(32), nullable=False),
            sa.Column("title", sa.Text(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("type", sa.String(16), nullable=False, server_default="guide"),
            sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        )
        op.create_index("idx_manual_sections_platform", "manual_sections", ["platform"])

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.String(64), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("actor_user_id", sa.String(64), nullable=True),
            sa.Column("actor_username", sa.String(150), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
        )


def downgrade() -> None:
    """Drop all CRM tables (children first)."""
    op.drop_table("audit_events")
    op.drop_index("idx_manual_sections_platform", table_name="manual_sections")
    op.drop_table("manual_sections")
    op.drop_index("idx_customer_copywritings_customer_id", table_name="customer_copywritings")
    op.drop_table("customer_copywritings")
    op.drop_index("idx_customer_images_customer_id", table_name="customer_images")
    op.drop_table("customer_images")
    op.drop_index("idx_customers_platform", table_name="customers")
    op.drop_index("idx_customers_creator_id", table_name="customers")
    op.drop_table("customers")
    op.drop_table("users")
