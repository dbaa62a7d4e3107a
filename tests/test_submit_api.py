from __future__ import annotations

import pytest
from httpx import AsyncClient
from PIL import Image
from sqlalchemy import select

from takes.models import Submission
from takes.models.submission import Platform, SubmissionStatus, Topic

FORM = {
    "platform": "twitter",
    "source_date": "2021-05-19",
    "topic": "scam",
    "language": "en",
    "description": "Bitcoin is a scam, mark my words",
}


def _files(jpeg: bytes, name: str = "take.jpg", content_type: str = "image/jpeg"):
    return {"image": (name, jpeg, content_type)}


async def _rows(session_factory) -> list[Submission]:
    async with session_factory() as s:
        return list((await s.scalars(select(Submission))).all())


@pytest.mark.asyncio
async def test_submit_creates_pending_record(
    app_client: AsyncClient, session_factory, media_root, jpeg_bytes
):
    r = await app_client.post(
        "/api/submit",
        data=FORM,
        files=_files(jpeg_bytes),
        headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
    )
    assert r.status_code == 201
    assert r.json() == {"success": True}

    rows = await _rows(session_factory)
    assert len(rows) == 1
    s = rows[0]
    assert s.platform is Platform.twitter
    assert s.topic is Topic.scam
    assert s.status is SubmissionStatus.pending
    assert s.reviewed_at is None
    assert s.submitted_by_ip == "203.0.113.5"
    assert s.image_path.startswith("submissions/") and s.image_path.endswith(".jpg")
    assert s.image_url == f"/media/{s.image_path}"
    assert (media_root / s.image_path).read_bytes() == jpeg_bytes


@pytest.mark.asyncio
async def test_uploaded_image_is_served_under_media(
    app_client: AsyncClient, session_factory, jpeg_bytes
):
    await app_client.post("/api/submit", data=FORM, files=_files(jpeg_bytes))
    (s,) = await _rows(session_factory)
    r = await app_client.get(s.image_url)
    assert r.status_code == 200
    assert r.content == jpeg_bytes


@pytest.mark.asyncio
async def test_honeypot_looks_like_success_but_writes_nothing(
    app_client: AsyncClient, session_factory, media_root, jpeg_bytes
):
    r = await app_client.post(
        "/api/submit", data={**FORM, "honeypot": "https://spam.example"}, files=_files(jpeg_bytes)
    )
    assert r.status_code == 201
    assert r.json() == {"success": True}
    assert await _rows(session_factory) == []
    assert [p for p in media_root.rglob("*") if p.is_file()] == []


@pytest.mark.asyncio
async def test_missing_fields(app_client: AsyncClient, jpeg_bytes):
    r = await app_client.post(
        "/api/submit", data={"platform": "twitter"}, files=_files(jpeg_bytes)
    )
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "missing_field"
    assert err["message"] == "Missing required fields."
    assert {e["field"] for e in err["errors"]} == {"source_date", "topic"}


@pytest.mark.asyncio
async def test_future_date_is_rejected(app_client: AsyncClient, session_factory, jpeg_bytes):
    r = await app_client.post(
        "/api/submit", data={**FORM, "source_date": "2999-01-01"}, files=_files(jpeg_bytes)
    )
    assert r.status_code == 400
    err = r.json()["error"]
    assert (err["field"], err["code"]) == ("source_date", "future_date")
    assert await _rows(session_factory) == []


@pytest.mark.asyncio
async def test_wrong_image_type_is_rejected(app_client: AsyncClient):
    r = await app_client.post(
        "/api/submit", data=FORM, files=_files(b"GIF89a...", "a.gif", "image/gif")
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "invalid_format"


@pytest.mark.asyncio
async def test_image_over_server_cap(app, app_client: AsyncClient, jpeg_bytes):
    app.state.settings = app.state.settings.model_copy(update={"upload_max_bytes": 100})
    r = await app_client.post("/api/submit", data=FORM, files=_files(jpeg_bytes))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "too_large"


@pytest.mark.asyncio
async def test_sixth_attempt_within_the_hour_is_rate_limited(
    app_client: AsyncClient, session_factory, jpeg_bytes
):
    for _ in range(5):
        r = await app_client.post("/api/submit", data=FORM, files=_files(jpeg_bytes))
        assert r.status_code == 201

    r = await app_client.post("/api/submit", data=FORM, files=_files(jpeg_bytes))
    assert r.status_code == 429
    assert r.json()["error"]["code"] == "rate_limited"
    assert int(r.headers["Retry-After"]) >= 1
    assert len(await _rows(session_factory)) == 5


@pytest.mark.asyncio
async def test_rate_limit_is_per_origin(app_client: AsyncClient, jpeg_bytes):
    for _ in range(5):
        await app_client.post(
            "/api/submit", data=FORM, files=_files(jpeg_bytes), headers={"X-Real-IP": "10.1.1.1"}
        )
    r = await app_client.post(
        "/api/submit", data=FORM, files=_files(jpeg_bytes), headers={"X-Real-IP": "10.2.2.2"}
    )
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_decompression_bomb_is_rejected_as_invalid_format(
    app_client: AsyncClient, session_factory, png_bytes, monkeypatch
):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    r = await app_client.post(
        "/api/submit", data=FORM, files=_files(png_bytes, "bomb.png", "image/png")
    )
    assert r.status_code == 400
    err = r.json()["error"]
    assert (err["field"], err["code"]) == ("image", "invalid_format")
    assert await _rows(session_factory) == []


@pytest.mark.asyncio
async def test_whitespace_honeypot_writes_nothing(
    app_client: AsyncClient, session_factory, jpeg_bytes
):
    r = await app_client.post(
        "/api/submit", data={**FORM, "honeypot": " "}, files=_files(jpeg_bytes)
    )
    assert r.status_code == 201
    assert r.json() == {"success": True}
    assert await _rows(session_factory) == []


@pytest.mark.asyncio
async def test_honeypot_sent_as_file_part_writes_nothing(
    app_client: AsyncClient, session_factory, jpeg_bytes
):
    files = {**_files(jpeg_bytes), "honeypot": ("trap.txt", b"", "text/plain")}
    r = await app_client.post("/api/submit", data=FORM, files=files)
    assert r.status_code == 201
    assert await _rows(session_factory) == []
