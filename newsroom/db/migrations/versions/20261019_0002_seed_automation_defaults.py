"""Seed automation settings, the AI byline and the general fallback pool."""

from __future__ import annotations

import uuid

from alembic import op
import sqlalchemy as sa


revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None

AI_AUTHOR_NAME = "Byoma AI"

SETTINGS_ROWS = [
    ("articles_per_execution", 3, "Articles published per scheduled run."),
    ("daily_target", 15, "Informational daily article target."),
    ("image_fallback_enabled", True, "Use curated images when AI generation fails."),
    ("trending_boost_enabled", True, "Prefer high-engagement source items."),
]

FALLBACK_ROWS = [
    ("https://images.unsplash.com/photo-1532996122724-e3c354a0b15b?w=1200&h=630&fit=crop", "Recycling symbols on green background"),
    ("https://images.unsplash.com/photo-1473341304170-971dccb5ac1e?w=1200&h=630&fit=crop", "Power transmission towers at sunset"),
    ("https://images.unsplash.com/photo-1497435334941-8c899ee9e8e9?w=1200&h=630&fit=crop", "Solar panels under a blue sky"),
    ("https://images.unsplash.com/photo-1518531933037-91b2f5f229cc?w=1200&h=630&fit=crop", "Green leaves in sunlight"),
]


def upgrade() -> None:
    conn = op.get_bind()

    authors = sa.table(
        "authors",
        sa.column("id", sa.Uuid()),
        sa.column("name", sa.String()),
        sa.column("is_ai", sa.Boolean()),
    )
    automation_settings = sa.table(
        "automation_settings",
        sa.column("id", sa.Uuid()),
        sa.column("key", sa.String()),
        sa.column("value", sa.JSON()),
        sa.column("description", sa.String()),
    )
    fallback_images = sa.table(
        "fallback_images",
        sa.column("id", sa.Uuid()),
        sa.column("url", sa.String()),
        sa.column("category", sa.String()),
        sa.column("alt_text", sa.String()),
        sa.column("usage_count", sa.Integer()),
    )

    conn.execute(sa.insert(authors), [{"id": uuid.uuid4(), "name": AI_AUTHOR_NAME, "is_ai": True}])
    conn.execute(
        sa.insert(automation_settings),
        [
            {"id": uuid.uuid4(), "key": key, "value": value, "description": description}
            for key, value, description in SETTINGS_ROWS
        ],
    )
    conn.execute(
        sa.insert(fallback_images),
        [
            {"id": uuid.uuid4(), "url": url, "category": "general", "alt_text": alt, "usage_count": 0}
            for url, alt in FALLBACK_ROWS
        ],
    )


def downgrade() -> None:
    conn = op.get_bind()
    conn.execute(sa.text("DELETE FROM fallback_images WHERE category = 'general'"))
    conn.execute(
        sa.text("DELETE FROM automation_settings WHERE key IN (:a, :b, :c, :d)"),
        dict(zip("abcd", [row[0] for row in SETTINGS_ROWS])),
    )
    conn.execute(sa.text("DELETE FROM authors WHERE name = :name"), {"name": AI_AUTHOR_NAME})
