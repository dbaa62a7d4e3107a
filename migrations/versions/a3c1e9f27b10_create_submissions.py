"""create submissions table

Revision ID: a3c1e9f27b10
Revises:
Create Date: 2026-02-14 00:00:00.000000
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a3c1e9f27b10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

PLATFORMS = ("twitter", "reddit", "youtube", "facebook", "linkedin", "news", "other")
TOPICS = ("bubble", "scam", "environment", "obituary", "regulation", "other")
LANGUAGES = ("en", "de")
STATUSES = ("pending", "approved", "rejected")


def _enum(values: tuple[str, ...], name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=16)


def upgrade() -> None:
    op.create_table(
        "submissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("image_url", sa.String(), nullable=False),
        sa.Column("image_path", sa.String(), nullable=False),
        sa.Column("platform", _enum(PLATFORMS, "platform"), nullable=False),
        sa.Column("source_date", sa.Date(), nullable=False),
        sa.Column("topic", _enum(TOPICS, "topic"), nullable=False),
        sa.Column("language", _enum(LANGUAGES, "language"), nullable=False),
        sa.Column("description", sa.String(length=280), nullable=True),
        sa.Column("submitted_by_ip", sa.String(length=64), nullable=True),
        sa.Column(
            "status",
            _enum(STATUSES, "submission_status"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_submissions"),
        sa.UniqueConstraint("image_path", name="uq_submissions_image_path"),
        sa.CheckConstraint(
            "(status = 'pending' AND reviewed_at IS NULL)"
            " OR (status <> 'pending' AND reviewed_at IS NOT NULL)",
            name="ck_submissions_reviewed_at_matches_status",
        ),
    )
    op.create_index("ix_submissions_created_at", "submissions", ["created_at"])
    op.create_index(
        "ix_submissions_status_source_date", "submissions", ["status", "source_date"]
    )


def downgrade() -> None:
    op.drop_index("ix_submissions_status_source_date", table_name="submissions")
    op.drop_index("ix_submissions_created_at", table_name="submissions")
    op.drop_table("submissions")
