from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from takes.api.deps import get_moderation_service, require_admin
from takes.models.submission import SubmissionStatus
from takes.schemas.submission import AdminListResponse, ReviewResult, ReviewUpdateRequest
from takes.services.moderation import ModerationService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/review", response_model=AdminListResponse, summary="Submissions by status")
async def list_for_review(
    status: SubmissionStatus = Query(SubmissionStatus.pending),
    limit: int = Query(100, ge=1, le=500),
    svc: ModerationService = Depends(get_moderation_service),
):
    return AdminListResponse(submissions=await svc.list(status=status, limit=limit))


@router.patch("/review", response_model=ReviewResult, summary="Approve or reject")
async def review(
    payload: ReviewUpdateRequest,
    svc: ModerationService = Depends(get_moderation_service),
):
    return await svc.review(payload.id, payload.status)


@router.delete("/review", summary="Delete a submission and its image")
async def delete_submission(
    id: uuid.UUID = Query(...),
    svc: ModerationService = Depends(get_moderation_service),
):
    await svc.delete(id)
    return {"success": True}
