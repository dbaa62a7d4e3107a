from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from takes.repositories.submission_repository import GalleryFilters, SubmissionRepository
from takes.schemas.submission import GalleryPage, SubmissionPublic

DEFAULT_LIMIT = 12
MAX_LIMIT = 50
# keeps page * limit inside a 64-bit OFFSET
MAX_PAGE = 1_000_000


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(limit, MAX_LIMIT))


class GalleryService:
    def __init__(self, session: AsyncSession) -> None:
        self.repo = SubmissionRepository(session)

    async def page(self, filters: GalleryFilters, *, page: int, limit: int | None) -> GalleryPage:
        per_page = clamp_limit(limit)
        page = max(0, min(page, MAX_PAGE))
        items, total = await self.repo.approved_page(
            filters, offset=page * per_page, limit=per_page
        )
        # the year list ignores the filters so the filter control stays complete
        years = await self.repo.approved_years()
        return GalleryPage(
            submissions=[SubmissionPublic.model_validate(s) for s in items],
            total_count=total,
            available_years=years,
        )
