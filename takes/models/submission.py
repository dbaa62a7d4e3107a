"""Submission model and the closed value sets it is built from."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, Index, String, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from takes.models.base import Base

DESCRIPTION_MAX_LENGTH = 280


class Platform(str, Enum):
    twitter = "twitter"
    reddit = "reddit"
    youtube = "youtube"
    facebook = "facebook"
    linkedin = "linkedin"
    news = "news"
    other = "other"


class Topic(str, Enum):
    bubble = "bubble"
    scam = "scam"
    environment = "environment"
    obituary = "obituary"
    regulation = "regulation"
    other = "other"


class Language(str, Enum):
    en = "en"
    de = "de"


class SubmissionStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


def _enum_column(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(enum_cls, name=name, native_enum=False, length=16, validate_strings=True)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        # reviewed_at is set exactly when the record leaves pending
        CheckConstraint(
            "(status = 'pending' AND reviewed_at IS NULL)"
            " OR (status <> 'pending' AND reviewed_at IS NOT NULL)",
            name="reviewed_at_matches_status",
        ),
        Index("ix_submissions_status_source_date", "status", "source_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    image_url: Mapped[str] = mapped_column(String, nullable=False)
    image_path: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    platform: Mapped[Platform] = mapped_column(_enum_column(Platform, "platform"), nullable=False)
    source_date: Mapped[date] = mapped_column(Date, nullable=False)
    topic: Mapped[Topic] = mapped_column(_enum_column(Topic, "topic"), nullable=False)
    language: Mapped[Language] = mapped_column(
        _enum_column(Language, "language"), nullable=False, default=Language.en
    )
    description: Mapped[str | None] = mapped_column(
        String(DESCRIPTION_MAX_LENGTH), nullable=True
    )
    submitted_by_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[SubmissionStatus] = mapped_column(
        _enum_column(SubmissionStatus, "submission_status"),
        nullable=False,
        default=SubmissionStatus.pending,
        server_default=SubmissionStatus.pending.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
