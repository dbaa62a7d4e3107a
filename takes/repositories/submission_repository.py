from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import delete, extract, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from takes.models.submission import (
    Language,
    Platform,
    Submission,
    SubmissionStatus,
    Topic,
)


@dataclass(frozen=True)
class GalleryFilters:
    language: Language | None = None
    platform: Platform | None = None
    topic: Topic | None = None
    year: int | None = None
    search: str | None = None


class SubmissionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        image_url: str,
        image_path: str,
        platform: Platform,
        source_date: date,
        topic: Topic,
        language: Language,
        description: str | None,
        submitted_by_ip: str | None,
    ) -> Submission:
        s = Submission(
            id=uuid.uuid4(),
            image_url=image_url,
            image_path=image_path,
            platform=platform,
            source_date=source_date,
            topic=topic,
            language=language,
            description=description,
            submitted_by_ip=submitted_by_ip,
            status=SubmissionStatus.pending,
            reviewed_at=None,
        )
        self._session.add(s)
        await self._session.flush()
        return s

    async def get(self, submission_id: uuid.UUID) -> Submission | None:
        return await self._session.get(Submission, submission_id)

    async def review_pending(
        self, submission_id: uuid.UUID, *, status: SubmissionStatus, reviewed_at: datetime
    ) -> bool:
        """Move a pending record to ``status``. False when it was not pending."""
        stmt = (
            update(Submission)
            .where(Submission.id == submission_id)
            .where(Submission.status == SubmissionStatus.pending)
            .values(status=status, reviewed_at=reviewed_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def delete(self, submission_id: uuid.UUID) -> bool:
        stmt = delete(Submission).where(Submission.id == submission_id)
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def list_by_status(self, *, status: SubmissionStatus, limit: int) -> list[Submission]:
        # moderation works the pending queue oldest first
        order = Submission.created_at.asc() if status is SubmissionStatus.pending else (
            Submission.created_at.desc()
        )
        stmt = (
            select(Submission)
            .where(Submission.status == status)
            .order_by(order, Submission.id)
            .limit(limit)
        )
        return list((await self._session.scalars(stmt)).all())

    async def approved_page(
        self, filters: GalleryFilters, *, offset: int, limit: int
    ) -> tuple[list[Submission], int]:
        conditions = [Submission.status == SubmissionStatus.approved]
        if filters.language is not None:
            conditions.append(Submission.language == filters.language)
        if filters.platform is not None:
            conditions.append(Submission.platform == filters.platform)
        if filters.topic is not None:
            conditions.append(Submission.topic == filters.topic)
        if filters.year is not None:
            conditions.append(Submission.source_date >= date(filters.year, 1, 1))
            conditions.append(Submission.source_date <= date(filters.year, 12, 31))
        if filters.search:
            conditions.append(Submission.description.icontains(filters.search, autoescape=True))

        count_stmt = select(func.count()).select_from(Submission).where(*conditions)
        total = int((await self._session.execute(count_stmt)).scalar_one())

        stmt = (
            select(Submission)
            .where(*conditions)
            .order_by(Submission.source_date.desc(), Submission.id.desc())
            .offset(offset)
            .limit(limit)
        )
        items = list((await self._session.scalars(stmt)).all())
        return items, total

    async def approved_years(self) -> list[int]:
        year_col = extract("year", Submission.source_date)
        stmt = (
            select(year_col)
            .where(Submission.status == SubmissionStatus.approved)
            .group_by(year_col)
            .order_by(year_col.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [int(y) for y in rows if y is not None]
