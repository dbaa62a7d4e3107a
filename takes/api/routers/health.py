from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from takes.db import get_async_session
from takes.schemas.common import OkResponse

router = APIRouter(tags=["health"])


@router.get("/healthz", response_model=OkResponse, summary="Liveness probe")
async def healthz():
    return {"ok": True}


@router.get("/readyz", response_model=OkResponse, summary="Readiness probe (SELECT 1)")
async def readyz(session: AsyncSession = Depends(get_async_session)):
    await session.execute(text("SELECT 1"))
    return {"ok": True}
