from __future__ import annotations

from datetime import date

import pytest
from httpx import AsyncClient

from takes.models.submission import Language, Platform, SubmissionStatus, Topic
from takes.repositories.submission_repository import GalleryFilters
from takes.services.gallery import MAX_LIMIT, MAX_PAGE, GalleryService, clamp_limit

APPROVED = SubmissionStatus.approved


@pytest.mark.asyncio
async def test_only_approved_submissions_are_listed(app_client: AsyncClient, seed_submission):
    approved = await seed_submission(status=APPROVED)
    await seed_submission(status=SubmissionStatus.pending)
    await seed_submission(status=SubmissionStatus.rejected)

    r = await app_client.get("/api/submissions")
    assert r.status_code == 200
    body = r.json()
    assert body["totalCount"] == 1
    assert [s["id"] for s in body["submissions"]] == [str(approved.id)]
    item = body["submissions"][0]
    assert "submitted_by_ip" not in item
    assert "image_path" not in item
    assert item["image_url"] == approved.image_url


@pytest.mark.asyncio
async def test_filters_combine(app_client: AsyncClient, seed_submission):
    match = await seed_submission(
        status=APPROVED, platform=Platform.twitter, source_date=date(2021, 5, 19)
    )
    await seed_submission(status=APPROVED, platform=Platform.reddit, source_date=date(2021, 3, 1))
    await seed_submission(status=APPROVED, platform=Platform.twitter, source_date=date(2018, 1, 2))

    r = await app_client.get("/api/submissions", params={"year": 2021, "platform": "twitter"})
    assert r.status_code == 200
    body = r.json()
    assert body["totalCount"] == 1
    assert [s["id"] for s in body["submissions"]] == [str(match.id)]
    # the year list ignores the filters
    assert body["availableYears"] == [2021, 2018]


@pytest.mark.asyncio
async def test_language_topic_and_search(app_client: AsyncClient, seed_submission):
    de = await seed_submission(
        status=APPROVED, language=Language.de, topic=Topic.environment,
        description="Bitcoin verbraucht zu viel Strom",
    )
    await seed_submission(status=APPROVED, language=Language.en, description="Tulip mania 2.0")

    r = await app_client.get("/api/submissions", params={"language": "de"})
    assert [s["id"] for s in r.json()["submissions"]] == [str(de.id)]

    r = await app_client.get("/api/submissions", params={"topic": "environment"})
    assert r.json()["totalCount"] == 1

    r = await app_client.get("/api/submissions", params={"search": "TULIP"})
    assert r.json()["totalCount"] == 1
    assert r.json()["submissions"][0]["description"] == "Tulip mania 2.0"

    # LIKE wildcards are matched literally
    r = await app_client.get("/api/submissions", params={"search": "%"})
    assert r.json()["totalCount"] == 0


@pytest.mark.asyncio
async def test_ordering_and_paging(app_client: AsyncClient, seed_submission):
    days = [date(2020, 1, d) for d in (5, 20, 12)]
    for d in days:
        await seed_submission(status=APPROVED, source_date=d)

    r = await app_client.get("/api/submissions", params={"page": 0, "limit": 2})
    body = r.json()
    assert body["totalCount"] == 3
    assert [s["source_date"] for s in body["submissions"]] == ["2020-01-20", "2020-01-12"]

    r = await app_client.get("/api/submissions", params={"page": 1, "limit": 2})
    assert [s["source_date"] for s in r.json()["submissions"]] == ["2020-01-05"]

    r = await app_client.get("/api/submissions", params={"page": 5, "limit": 2})
    assert r.json()["submissions"] == []
    assert r.json()["totalCount"] == 3


@pytest.mark.asyncio
async def test_empty_gallery(app_client: AsyncClient):
    r = await app_client.get("/api/submissions")
    assert r.json() == {"submissions": [], "totalCount": 0, "availableYears": []}


@pytest.mark.asyncio
async def test_invalid_filter_value_is_rejected(app_client: AsyncClient):
    r = await app_client.get("/api/submissions", params={"platform": "myspace"})
    assert r.status_code == 422


def test_clamp_limit():
    assert clamp_limit(None) == 12
    assert clamp_limit(1000) == MAX_LIMIT
    assert clamp_limit(0) == 1


@pytest.mark.asyncio
async def test_page_beyond_bound_is_rejected(app_client: AsyncClient, seed_submission):
    await seed_submission(status=APPROVED)
    r = await app_client.get("/api/submissions", params={"page": 10**18})
    assert r.status_code == 422

    r = await app_client.get("/api/submissions", params={"page": MAX_PAGE, "limit": MAX_LIMIT})
    assert r.status_code == 200
    assert r.json()["submissions"] == []
    assert r.json()["totalCount"] == 1


@pytest.mark.asyncio
async def test_service_clamps_huge_page(session, seed_submission):
    await seed_submission(status=APPROVED)
    page = await GalleryService(session).page(GalleryFilters(), page=10**18, limit=12)
    assert page.submissions == []
    assert page.total_count == 1
