"""Create reviews, tech news, comments and static pages tables.

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUS_CHECK = "status IN ('draft', 'published', 'archived')"


def _article_columns() -> list[sa.Column]:
    """Columns shared by publishable tables."""
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("meta_title", sa.String(150), nullable=True),
        sa.Column("meta_description", sa.String(300), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _categorized_columns(subcategory_nullable: bool) -> list[sa.Column]:
    return [
        sa.Column("featured_image_url", sa.String(500), nullable=True),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("subcategory_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("subcategories.id", ondelete="RESTRICT"), nullable=subcategory_nullable),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
    ]


def _common_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_id", table, ["id"])
    op.create_index(f"ix_{table}_tenant_id", table, ["tenant_id"])
    op.create_index(f"ix_{table}_slug", table, ["slug"])
    op.create_index(f"ix_{table}_status", table, ["status"])
    op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"])
    op.create_index(
        f"uq_{table}_tenant_slug",
        table,
        ["tenant_id", "slug"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )


def upgrade() -> None:
    """Create content tables."""
    op.create_table(
        "reviews",
        *_article_columns(),
        *_categorized_columns(subcategory_nullable=False),
        sa.Column("product_name", sa.String(200), nullable=False),
        sa.Column("brand", sa.String(100), nullable=True),
        sa.Column("excerpt", sa.String(500), nullable=False),
        sa.Column("rating", sa.Numeric(3, 1), nullable=True),
        sa.Column("pros", postgresql.ARRAY(sa.String(200)), nullable=False, server_default="{}"),
        sa.Column("cons", postgresql.ARRAY(sa.String(200)), nullable=False, server_default="{}"),
        sa.CheckConstraint(STATUS_CHECK, name="ck_reviews_status"),
        sa.CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 10)", name="ck_reviews_rating"),
    )
    _common_indexes("reviews")
    op.create_index("ix_reviews_category", "reviews", ["category_id", "subcategory_id"])
    op.create_index("ix_reviews_published", "reviews", ["tenant_id", "status", "published_at"])

    op.create_table(
        "tech_news",
        *_article_columns(),
        *_categorized_columns(subcategory_nullable=True),
        sa.Column("excerpt", sa.String(300), nullable=False),
        sa.Column("tags", postgresql.ARRAY(sa.String(50)), nullable=False, server_default="{}"),
        sa.Column("source_name", sa.String(100), nullable=True),
        sa.Column("source_url", sa.String(500), nullable=True),
        sa.Column("is_breaking", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint(STATUS_CHECK, name="ck_tech_news_status"),
        sa.CheckConstraint("priority >= 0 AND priority <= 10", name="ck_tech_news_priority"),
    )
    _common_indexes("tech_news")
    op.create_index("ix_tech_news_category", "tech_news", ["category_id", "published_at"])
    op.create_index("ix_tech_news_published", "tech_news", ["tenant_id", "status", "published_at"])

    op.create_table(
        "comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.String(1000), nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("review_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("reviews.id", ondelete="RESTRICT"), nullable=True),
        sa.Column("tech_news_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("tech_news.id", ondelete="RESTRICT"), nullable=True),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hidden_reason", sa.String(200), nullable=True),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("moderated_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("moderated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("(review_id IS NULL) <> (tech_news_id IS NULL)", name="ck_comments_single_target"),
    )
    op.create_index("ix_comments_id", "comments", ["id"])
    op.create_index("ix_comments_tenant_id", "comments", ["tenant_id"])
    op.create_index("ix_comments_deleted_at", "comments", ["deleted_at"])
    op.create_index("ix_comments_review", "comments", ["review_id", "created_at"])
    op.create_index("ix_comments_tech_news", "comments", ["tech_news_id", "created_at"])
    op.create_index("ix_comments_parent", "comments", ["parent_id"])
    op.create_index("ix_comments_author", "comments", ["author_id"])

    op.create_table(
        "static_pages",
        *_article_columns(),
        sa.Column("page_type", sa.String(30), nullable=False),
        sa.Column("excerpt", sa.String(300), nullable=True),
        sa.Column("show_in_footer", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("show_in_menu", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.CheckConstraint(STATUS_CHECK, name="ck_static_pages_status"),
    )
    _common_indexes("static_pages")
    op.create_index("ix_static_pages_page_type", "static_pages", ["page_type"])


def downgrade() -> None:
    """Drop content tables."""
    op.drop_table("comments")
    op.drop_table("static_pages")
    op.drop_table("tech_news")
    op.drop_table("reviews")
