from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from takes.models.submission import Language, Platform, SubmissionStatus, Topic


class SubmitAccepted(BaseModel):
    success: bool = Field(default=True, description="Accepted for moderation")


class SubmissionPublic(BaseModel):
    """Gallery item. Never carries the submitter origin or the storage key."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    image_url: str
    platform: Platform
    source_date: date
    topic: Topic
    language: Language
    description: str | None
    created_at: datetime


class SubmissionAdmin(SubmissionPublic):
    image_path: str
    submitted_by_ip: str | None
    status: SubmissionStatus
    reviewed_at: datetime | None


class GalleryPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submissions: list[SubmissionPublic]
    total_count: int = Field(alias="totalCount")
    available_years: list[int] = Field(alias="availableYears")


class AdminListResponse(BaseModel):
    submissions: list[SubmissionAdmin]


class ReviewDecision(str, Enum):
    approved = "approved"
    rejected = "rejected"


class ReviewUpdateRequest(BaseModel):
    id: uuid.UUID
    status: ReviewDecision


class ReviewResult(BaseModel):
    success: bool = True
    id: uuid.UUID
    status: SubmissionStatus
    reviewed_at: datetime | None
    changed: bool
