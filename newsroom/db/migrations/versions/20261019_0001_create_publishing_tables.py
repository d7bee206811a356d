"""Create publishing tables"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "authors",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("is_ai", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "articles",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("slug", sa.String(length=128), nullable=False),
        sa.Column("meta_title", sa.String(length=256), nullable=True),
        sa.Column("meta_description", sa.String(length=512), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("main_keyword", sa.String(length=256), nullable=True),
        sa.Column("reading_time", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("featured_image", sa.String(length=2048), nullable=True),
        sa.Column("featured_image_alt", sa.String(length=512), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ai_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_curated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("author_id", sa.Uuid(), sa.ForeignKey("authors.id"), nullable=True),
        sa.Column("source_url", sa.String(length=2048), nullable=True),
        sa.Column("source_name", sa.String(length=200), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("slug", name="uq_articles_slug"),
    )
    op.create_index("ix_articles_status_published", "articles", ["status", "published_at"], unique=False)

    op.create_table(
        "source_items",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("raw_content", sa.Text(), nullable=True),
        sa.Column("source_url", sa.String(length=2048), nullable=False),
        sa.Column("source_name", sa.String(length=200), nullable=True),
        sa.Column("source_site_url", sa.String(length=2048), nullable=True),
        sa.Column("engagement_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("linked_article_id", sa.Uuid(), sa.ForeignKey("articles.id"), nullable=True),
        sa.Column("claim_token", sa.String(length=64), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("fetched_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_source_items_processed_score",
        "source_items",
        ["processed", "engagement_score"],
        unique=False,
    )

    op.create_table(
        "fallback_images",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False, server_default="general"),
        sa.Column("alt_text", sa.String(length=512), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("url", name="uq_fallback_images_url"),
    )
    op.create_index(
        "ix_fallback_images_category_usage",
        "fallback_images",
        ["category", "usage_count"],
        unique=False,
    )

    op.create_table(
        "automation_settings",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("description", sa.String(length=512), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("key", name="uq_automation_settings_key"),
    )

    op.create_table(
        "job_runs",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("stage", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("task_name", sa.String(length=100), nullable=True),
        sa.Column("trace_id", sa.String(length=64), nullable=True),
        sa.Column("test_mode", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("items_requested", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_published", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("items_failed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.String(length=512), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_job_runs_stage_status", "job_runs", ["stage", "status"], unique=False)
    op.create_index("ix_job_runs_trace", "job_runs", ["trace_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_job_runs_trace", table_name="job_runs")
    op.drop_index("ix_job_runs_stage_status", table_name="job_runs")
    op.drop_table("job_runs")
    op.drop_table("automation_settings")
    op.drop_index("ix_fallback_images_category_usage", table_name="fallback_images")
    op.drop_table("fallback_images")
    op.drop_index("ix_source_items_processed_score", table_name="source_items")
    op.drop_table("source_items")
    op.drop_index("ix_articles_status_published", table_name="articles")
    op.drop_table("articles")
    op.drop_table("authors")
