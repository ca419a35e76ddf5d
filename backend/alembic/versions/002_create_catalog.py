"""Create categories and subcategories tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _common_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(500), nullable=True),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("meta_title", sa.String(150), nullable=True),
        sa.Column("meta_description", sa.String(300), nullable=True),
        sa.Column("created_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create catalog tables.

    Sort positions are unique among active rows (per tenant for categories,
    per parent category for subcategories).
    """
    op.create_table(
        "categories",
        *_common_columns(),
        sa.Column("group", sa.String(30), nullable=False),
        sa.Column("color", sa.String(7), nullable=False, server_default="#000000"),
        sa.CheckConstraint("color ~ '^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$'", name="ck_categories_color"),
    )
    op.create_index("ix_categories_id", "categories", ["id"])
    op.create_index("ix_categories_tenant_id", "categories", ["tenant_id"])
    op.create_index("ix_categories_slug", "categories", ["slug"])
    op.create_index("ix_categories_group", "categories", ["group"])
    op.create_index("ix_categories_sort_order", "categories", ["sort_order"])
    op.create_index("ix_categories_deleted_at", "categories", ["deleted_at"])
    op.create_index("ix_categories_active_sort", "categories", ["tenant_id", "is_active", "sort_order"])
    op.create_index(
        "uq_categories_tenant_slug",
        "categories",
        ["tenant_id", "slug"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index(
        "uq_categories_tenant_sort_order",
        "categories",
        ["tenant_id", "sort_order"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "subcategories",
        *_common_columns(),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
    )
    op.create_index("ix_subcategories_id", "subcategories", ["id"])
    op.create_index("ix_subcategories_tenant_id", "subcategories", ["tenant_id"])
    op.create_index("ix_subcategories_slug", "subcategories", ["slug"])
    op.create_index("ix_subcategories_sort_order", "subcategories", ["sort_order"])
    op.create_index("ix_subcategories_deleted_at", "subcategories", ["deleted_at"])
    op.create_index("ix_subcategories_category", "subcategories", ["category_id", "is_active", "sort_order"])
    op.create_index(
        "uq_subcategories_category_slug",
        "subcategories",
        ["category_id", "slug"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index(
        "uq_subcategories_category_sort_order",
        "subcategories",
        ["tenant_id", "category_id", "sort_order"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )


def downgrade() -> None:
    """Drop catalog tables."""
    op.drop_table("subcategories")
    op.drop_table("categories")
