from __future__ import annotations

import httpx
import pytest

from scripts import submit_screenshot
from support import make_image
from takes.services.image_preprocess import prepare_image


def _args(*extra: str):
    return submit_screenshot._build_parser().parse_args(
        ["shot.png", "--platform", "twitter", "--topic", "scam", "--source-date", "2021-05-19", *extra]
    )


def test_build_form_carries_all_fields():
    prepared = prepare_image(make_image("PNG"), filename="shot.png")
    data, files = submit_screenshot.build_form(_args("--description", "zero by 2022"), prepared)
    assert data == {
        "platform": "twitter",
        "topic": "scam",
        "source_date": "2021-05-19",
        "language": "en",
        "honeypot": "",
        "description": "zero by 2022",
    }
    assert files["image"] == ("shot.png", prepared.data, "image/png")


@pytest.mark.asyncio
async def test_post_submission_sends_multipart():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"success": True})

    prepared = prepare_image(make_image("PNG"), filename="shot.png")
    data, files = submit_screenshot.build_form(_args(), prepared)
    r = await submit_screenshot.post_submission(
        "http://takes.test", data, files, transport=httpx.MockTransport(handler)
    )
    assert r.status_code == 201
    req = seen[0]
    assert req.url.path == "/api/submit"
    assert req.headers["content-type"].startswith("multipart/form-data")
    assert b'name="platform"' in req.content


def test_wrong_type_is_rejected_before_upload(tmp_path):
    gif = tmp_path / "anim.gif"
    gif.write_bytes(make_image("GIF"))
    code = submit_screenshot.main(
        [str(gif), "--platform", "twitter", "--topic", "scam", "--source-date", "2021-05-19"]
    )
    assert code == 2


def test_unknown_platform_is_an_argument_error():
    with pytest.raises(SystemExit):
        submit_screenshot._build_parser().parse_args(
            ["a.png", "--platform", "myspace", "--topic", "scam", "--source-date", "2021-05-19"]
        )
