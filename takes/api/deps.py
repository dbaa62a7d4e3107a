"""API dependency helpers and service providers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from takes.core.config import Settings
from takes.core.exceptions import UnauthorizedError
from takes.db import get_async_session
from takes.services.gallery import GalleryService
from takes.services.identity import IdentityProvider, is_admin
from takes.services.intake import IntakePipeline
from takes.services.intake_rate_limit import IntakeRateLimiter
from takes.services.moderation import ModerationService
from takes.services.price import PriceService
from takes.services.storage import BlobStore

__all__ = [
    "get_async_session",
    "get_settings_dep",
    "get_blob_store",
    "get_intake_rate_limiter",
    "get_intake_pipeline",
    "get_gallery_service",
    "get_moderation_service",
    "get_price_service",
    "require_admin",
]


# Process-wide collaborators live on app.state; create_app builds them and
# tests swap them there.


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_intake_rate_limiter(request: Request) -> IntakeRateLimiter:
    return request.app.state.intake_rate_limiter


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_price_service(request: Request) -> PriceService:
    return request.app.state.price_service


def get_intake_pipeline(
    session: AsyncSession = Depends(get_async_session),
    blob_store: BlobStore = Depends(get_blob_store),
    rate_limiter: IntakeRateLimiter = Depends(get_intake_rate_limiter),
    settings: Settings = Depends(get_settings_dep),
) -> IntakePipeline:
    return IntakePipeline(
        session,
        blob_store=blob_store,
        rate_limiter=rate_limiter,
        max_bytes=settings.upload_max_bytes,
    )


def get_gallery_service(session: AsyncSession = Depends(get_async_session)) -> GalleryService:
    return GalleryService(session)


def get_moderation_service(
    session: AsyncSession = Depends(get_async_session),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ModerationService:
    return ModerationService(session, blob_store)


def require_admin(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings_dep),
) -> str:
    """Caller identity when it is the configured administrator, else 401."""
    identity = provider.identify(request)
    if not is_admin(identity, settings.admin_email):
        raise UnauthorizedError()
    return identity
