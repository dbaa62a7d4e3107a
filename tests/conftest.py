# tests/conftest.py
import os
import tempfile
from datetime import UTC, date, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# The app module builds its engine and collaborators at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TESTING"] = "1"
os.environ.setdefault("LOCAL_STORAGE_PATH", tempfile.mkdtemp(prefix="takes-media-"))

from takes.core.config import Settings  # noqa: E402
from takes.db import create_engine_for_url, get_async_session  # noqa: E402
from takes.main import create_app  # noqa: E402
from takes.models import Base, Submission  # noqa: E402
from takes.models.submission import Language, Platform, SubmissionStatus, Topic  # noqa: E402
from support import make_image  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_TOKEN = "admin-token"
USER_TOKEN = "user-token"


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        app_env="test",
        admin_email=ADMIN_EMAIL,
        auth_tokens={ADMIN_TOKEN: ADMIN_EMAIL, USER_TOKEN: "someone@example.com"},
        storage_backend="local",
        local_storage_path=str(tmp_path / "media"),
        intake_rate_limit=5,
        intake_rate_window_seconds=3600,
    )


# ==== Engine / Schema ====
@pytest_asyncio.fixture(scope="function")
async def engine():
    eng = create_engine_for_url("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function", name="session")
async def _session(session_factory):
    async with session_factory() as s:
        yield s
        if s.in_transaction():
            await s.rollback()


@pytest.fixture
def app(settings, session_factory):
    application = create_app(settings)

    async def override_get_session():
        async with session_factory() as s:
            yield s

    application.dependency_overrides[get_async_session] = override_get_session
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def app_client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def media_root(app):
    return app.state.blob_store.base_path


@pytest.fixture
def seed_submission(session_factory):
    """Insert a submission directly; approved/rejected ones get reviewed_at."""
    counter = 0

    async def _seed(
        *,
        status: SubmissionStatus = SubmissionStatus.pending,
        platform: Platform = Platform.twitter,
        topic: Topic = Topic.scam,
        language: Language = Language.en,
        source_date: date = date(2021, 5, 19),
        description: str | None = None,
    ) -> Submission:
        nonlocal counter
        counter += 1
        key = f"submissions/seed-{counter}.jpg"
        s = Submission(
            image_url=f"/media/{key}",
            image_path=key,
            platform=platform,
            topic=topic,
            language=language,
            source_date=source_date,
            description=description,
            submitted_by_ip="203.0.113.7",
            status=status,
            reviewed_at=None if status is SubmissionStatus.pending else datetime.now(UTC),
        )
        async with session_factory() as sess:
            sess.add(s)
            await sess.commit()
        return s

    return _seed
