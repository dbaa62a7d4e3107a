from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from takes.core.exceptions import ConflictError, NotFoundError
from takes.models.submission import SubmissionStatus
from takes.repositories.submission_repository import SubmissionRepository
from takes.schemas.submission import ReviewDecision, ReviewResult, SubmissionAdmin
from takes.services.storage import BlobStore

logger = structlog.get_logger(__name__)


class ModerationService:
    def __init__(self, session: AsyncSession, blob_store: BlobStore) -> None:
        self.session = session
        self.repo = SubmissionRepository(session)
        self.blob_store = blob_store

    async def list(self, *, status: SubmissionStatus, limit: int) -> list[SubmissionAdmin]:
        items = await self.repo.list_by_status(status=status, limit=limit)
        return [SubmissionAdmin.model_validate(s) for s in items]

    async def review(self, submission_id: uuid.UUID, decision: ReviewDecision) -> ReviewResult:
        """Approve or reject a pending submission.

        Repeating the decision a record already has is a no-op and leaves
        ``reviewed_at`` untouched; reversing a decision is refused.
        """
        target = SubmissionStatus(decision.value)
        moved = await self.repo.review_pending(
            submission_id, status=target, reviewed_at=datetime.now(UTC)
        )
        await self.session.commit()

        s = await self.repo.get(submission_id)
        if s is None:
            raise NotFoundError("Submission not found.")
        await self.session.refresh(s)
        if not moved and s.status != target:
            raise ConflictError(f"Submission was already {s.status.value}.")

        logger.info(
            "submission_reviewed",
            submission_id=str(submission_id),
            status=target.value,
            changed=moved,
        )
        return ReviewResult(
            id=s.id, status=s.status, reviewed_at=s.reviewed_at, changed=moved
        )

    async def delete(self, submission_id: uuid.UUID) -> None:
        s = await self.repo.get(submission_id)
        if s is None:
            raise NotFoundError("Submission not found.")
        image_path = s.image_path

        await self.repo.delete(submission_id)
        await self.session.commit()

        try:
            await asyncio.to_thread(self.blob_store.delete, image_path)
        except Exception:
            # the record is gone; a leftover blob is swept out of band
            logger.warning(
                "blob_delete_failed",
                submission_id=str(submission_id),
                key=image_path,
                exc_info=True,
            )
        logger.info("submission_deleted", submission_id=str(submission_id))
