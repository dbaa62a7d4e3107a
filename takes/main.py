from __future__ import annotations

import sentry_sdk
import structlog
from fastapi import FastAPI
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from takes.api import errors
from takes.api.routers import admin_review, bitcoin_price, health, submissions
from takes.core.config import Settings, get_settings
from takes.logging import setup_logging
from takes.middleware.rate_limit import rate_limit_middleware
from takes.middleware.request_id import request_id_middleware
from takes.middleware.security_headers import security_headers_middleware
from takes.services.identity import StaticTokenIdentityProvider
from takes.services.intake_rate_limit import IntakeRateLimiter
from takes.services.price import CoinGeckoPriceOracle, InMemoryPriceCache, PriceService
from takes.services.storage import LocalBlobStore, build_blob_store

_DEFAULT_DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]
_DEFAULT_PROD_ORIGINS = ["http://localhost:3000"]


def _init_sentry(settings: Settings) -> None:
    if not settings.sentry_dsn:
        return
    # traces_sample_rate: clamp to [0.0, 0.2]
    traces_rate = max(0.0, min(0.2, settings.sentry_traces_rate))
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        release=settings.release,
        integrations=[StarletteIntegration()],
        traces_sample_rate=traces_rate,
        send_default_pii=False,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    # Initialize structured logging first
    setup_logging(settings.app_env)
    _init_sentry(settings)

    app = FastAPI(title="Bad Bitcoin Takes", version="0.1.0")

    # Process-wide collaborators (see takes.api.deps)
    app.state.settings = settings
    app.state.blob_store = build_blob_store(settings)
    app.state.intake_rate_limiter = IntakeRateLimiter(
        limit=settings.intake_rate_limit,
        window_seconds=settings.intake_rate_window_seconds,
        storage_uri=settings.rate_limit_storage_uri,
    )
    app.state.identity_provider = StaticTokenIdentityProvider(settings.auth_tokens)
    app.state.price_service = PriceService(
        CoinGeckoPriceOracle(
            settings.coingecko_base_url,
            api_key=settings.coingecko_api_key,
            timeout=settings.price_oracle_timeout,
        ),
        InMemoryPriceCache(),
    )

    app.middleware("http")(request_id_middleware)
    app.middleware("http")(security_headers_middleware)
    # Coarse IP throttle for every route
    app.middleware("http")(rate_limit_middleware)

    allow_origins = settings.cors_origins or (
        _DEFAULT_PROD_ORIGINS if settings.is_prod else _DEFAULT_DEV_ORIGINS
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=["*"],
    )

    errors.install(app)
    app.include_router(submissions.router)
    app.include_router(admin_review.router)
    app.include_router(bitcoin_price.router)
    app.include_router(health.router)

    store = app.state.blob_store
    if isinstance(store, LocalBlobStore) and settings.public_media_base_url.startswith("/"):
        app.mount(
            settings.public_media_base_url.rstrip("/"),
            StaticFiles(directory=str(store.base_path)),
            name="media",
        )

    @app.get("/health")
    def health_check():
        return {"status": "ok", "env": settings.app_env}

    structlog.get_logger(__name__).info(
        "app_startup", env=settings.app_env, storage=settings.storage_backend
    )
    return app


app = create_app()
