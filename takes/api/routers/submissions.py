from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import FormData, UploadFile

from takes.api.deps import get_gallery_service, get_intake_pipeline, get_settings_dep
from takes.core.config import Settings
from takes.models.submission import Language, Platform, Topic
from takes.repositories.submission_repository import GalleryFilters
from takes.schemas.common import ErrorResponse
from takes.schemas.submission import GalleryPage, SubmitAccepted
from takes.services.gallery import DEFAULT_LIMIT, MAX_PAGE, GalleryService
from takes.services.intake import IntakePipeline
from takes.services.validation import RawSubmission, UploadedImage
from takes.utils.request import client_origin

router = APIRouter(prefix="/api", tags=["submissions"])


def _text(form: FormData, name: str) -> str | None:
    value = form.get(name)
    return value if isinstance(value, str) else None


def _honeypot(form: FormData) -> str | None:
    value = form.get("honeypot")
    if value is None or isinstance(value, str):
        return value
    # a file part in the trap field is set all the same
    return value.filename or "file"


async def _read_image(form: FormData, max_bytes: int) -> UploadedImage | None:
    value = form.get("image")
    if not isinstance(value, UploadFile):
        return None
    # one byte over the cap is enough to reject it
    data = await value.read(max_bytes + 1)
    return UploadedImage(
        filename=value.filename or "",
        content_type=value.content_type,
        data=data,
    )


@router.post(
    "/submit",
    status_code=201,
    response_model=SubmitAccepted,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Submit a screenshot for moderation",
)
async def submit(
    request: Request,
    pipeline: IntakePipeline = Depends(get_intake_pipeline),
    settings: Settings = Depends(get_settings_dep),
):
    async def load_form() -> RawSubmission:
        async with request.form() as form:
            return RawSubmission(
                image=await _read_image(form, settings.upload_max_bytes),
                platform=_text(form, "platform"),
                source_date=_text(form, "source_date"),
                topic=_text(form, "topic"),
                language=_text(form, "language"),
                description=_text(form, "description"),
                honeypot=_honeypot(form),
            )

    # the honeypot outcome gets the very same answer
    await pipeline.submit(client_origin(request), load_form)
    return SubmitAccepted()


@router.get("/submissions", response_model=GalleryPage, summary="Approved submissions")
async def list_submissions(
    page: int = Query(0, ge=0, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, description="Capped at 50"),
    language: Language | None = Query(None),
    platform: Platform | None = Query(None),
    topic: Topic | None = Query(None),
    year: int | None = Query(None, ge=1, le=9999),
    search: str | None = Query(None, max_length=200),
    svc: GalleryService = Depends(get_gallery_service),
):
    filters = GalleryFilters(
        language=language,
        platform=platform,
        topic=topic,
        year=year,
        search=search.strip() if search and search.strip() else None,
    )
    return await svc.page(filters, page=page, limit=limit)
