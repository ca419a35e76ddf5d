"""Create comparisons table.

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create comparisons table."""
    op.create_table(
        "comparisons",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("summary", sa.String(500), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("product_a_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("reviews.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("product_b_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("reviews.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("metrics", postgresql.JSONB(), nullable=False, server_default="[]"),
        sa.Column("product_a_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_b_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("winner", sa.String(10), nullable=False, server_default="tie"),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("meta_title", sa.String(150), nullable=True),
        sa.Column("meta_description", sa.String(300), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('draft', 'published', 'archived')", name="ck_comparisons_status"),
        sa.CheckConstraint("product_a_id <> product_b_id", name="ck_comparisons_distinct_products"),
        sa.CheckConstraint("winner IN ('product_a', 'product_b', 'tie')", name="ck_comparisons_winner"),
        sa.CheckConstraint("priority >= 0 AND priority <= 10", name="ck_comparisons_priority"),
    )
    op.create_index("ix_comparisons_id", "comparisons", ["id"])
    op.create_index("ix_comparisons_tenant_id", "comparisons", ["tenant_id"])
    op.create_index("ix_comparisons_slug", "comparisons", ["slug"])
    op.create_index("ix_comparisons_status", "comparisons", ["status"])
    op.create_index("ix_comparisons_deleted_at", "comparisons", ["deleted_at"])
    op.create_index(
        "uq_comparisons_tenant_slug",
        "comparisons",
        ["tenant_id", "slug"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index("ix_comparisons_products", "comparisons", ["product_a_id", "product_b_id"])
    op.create_index("ix_comparisons_published", "comparisons", ["tenant_id", "status", "published_at"])


def downgrade() -> None:
    """Drop comparisons table."""
    op.drop_table("comparisons")
