"""Submission intake: rate limit, honeypot, validation, then the write saga.

Terminal states of one attempt (each logged once as ``intake_finished``):
rate_limited, honeypot_silent, invalid, upload_failed,
insert_failed_compensated, created.
"""

from __future__ import annotations

import asyncio
import secrets
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from takes.core.exceptions import RateLimitError, UpstreamError, ValidationError
from takes.repositories.submission_repository import SubmissionRepository
from takes.services.intake_rate_limit import IntakeRateLimiter
from takes.services.saga import Saga, SagaFailed, SagaStep
from takes.services.storage import BlobStore
from takes.services.validation import (
    SERVER_MAX_BYTES,
    RawSubmission,
    SubmissionDraft,
    validate_submission,
)

logger = structlog.get_logger(__name__)

KEY_PREFIX = "submissions"
GENERIC_FAILURE = "Submission failed. Please try again."


class IntakeOutcome(str, Enum):
    created = "created"
    honeypot = "honeypot"


@dataclass(frozen=True)
class IntakeResult:
    outcome: IntakeOutcome
    submission_id: uuid.UUID | None = None


def storage_key(extension: str, *, now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return f"{KEY_PREFIX}/{millis}-{secrets.token_hex(5)}.{extension}"


def _utc_today() -> date:
    return datetime.now(UTC).date()


class IntakePipeline:
    def __init__(
        self,
        session: AsyncSession,
        *,
        blob_store: BlobStore,
        rate_limiter: IntakeRateLimiter,
        max_bytes: int = SERVER_MAX_BYTES,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self.session = session
        self.repo = SubmissionRepository(session)
        self.blob_store = blob_store
        self.rate_limiter = rate_limiter
        self.max_bytes = max_bytes
        self._today = today

    async def submit(
        self, identity: str, load_form: Callable[[], Awaitable[RawSubmission]]
    ) -> IntakeResult:
        log = logger.bind(identity=identity)

        decision = await self.rate_limiter.check(identity)
        if not decision.allowed:
            log.info("intake_finished", state="rate_limited")
            raise RateLimitError(retry_after=decision.retry_after())

        raw = await load_form()

        if raw.honeypot:
            # answered like a real success, nothing is written
            log.info("intake_finished", state="honeypot_silent")
            return IntakeResult(outcome=IntakeOutcome.honeypot)

        result = validate_submission(raw, today=self._today(), max_bytes=self.max_bytes)
        if not result.ok:
            first = result.errors[0]
            log.info("intake_finished", state="invalid", field=first.field, code=first.code)
            raise ValidationError(
                first.message,
                code=first.code,
                field=first.field,
                details=[e.as_dict() for e in result.errors],
            )

        draft = result.submission
        assert draft is not None
        key = storage_key(draft.extension)
        saga = Saga(
            [
                SagaStep("upload_blob", self._upload(key, draft), self._discard(key)),
                SagaStep("insert_record", self._insert(key, draft, identity)),
            ]
        )
        try:
            ctx = await saga.run()
        except SagaFailed as exc:
            if exc.step == "upload_blob":
                log.error("intake_finished", state="upload_failed", key=key, error=str(exc.cause))
                raise UpstreamError(
                    GENERIC_FAILURE, code="upload_failed", status_code=500
                ) from exc
            log.error(
                "intake_finished",
                state="insert_failed_compensated",
                key=key,
                compensated=exc.compensated,
                error=str(exc.cause),
            )
            raise UpstreamError(GENERIC_FAILURE, code="save_failed", status_code=500) from exc

        submission_id = ctx["insert_record"]
        log.info("intake_finished", state="created", submission_id=str(submission_id), key=key)
        return IntakeResult(outcome=IntakeOutcome.created, submission_id=submission_id)

    def _upload(self, key: str, draft: SubmissionDraft):
        async def action(_: dict[str, Any]) -> str:
            await asyncio.to_thread(
                self.blob_store.put, key, draft.image.data, content_type=draft.content_type
            )
            return self.blob_store.public_url(key)

        return action

    def _discard(self, key: str):
        async def compensation(_: dict[str, Any]) -> None:
            await asyncio.to_thread(self.blob_store.delete, key)

        return compensation

    def _insert(self, key: str, draft: SubmissionDraft, identity: str):
        async def action(ctx: dict[str, Any]) -> uuid.UUID:
            try:
                s = await self.repo.create(
                    image_url=ctx["upload_blob"],
                    image_path=key,
                    platform=draft.platform,
                    source_date=draft.source_date,
                    topic=draft.topic,
                    language=draft.language,
                    description=draft.description,
                    submitted_by_ip=identity,
                )
                await self.session.commit()
            except SQLAlchemyError:
                await self.session.rollback()
                raise
            return s.id

        return action
