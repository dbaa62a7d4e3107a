"""Upload a screenshot from the command line.

Runs the same local checks as the web form (type, 500 KB cap, downscale to
1400 px) before anything is sent, then posts the multipart form to
``/api/submit``. Exit codes: 0 accepted, 1 server refused, 2 rejected locally.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

import httpx

from takes.models.submission import Language, Platform, Topic
from takes.services.image_preprocess import PreparedImage, PreprocessError, prepare_image

logger = logging.getLogger(__name__)

_LOCAL_ERRORS = {
    "format": "Only JPG, PNG and WebP images are accepted.",
    "size": "Image is too large (max 500 KB).",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Submit a bad Bitcoin take")
    parser.add_argument("image", type=Path)
    parser.add_argument("--platform", required=True, choices=[p.value for p in Platform])
    parser.add_argument("--topic", required=True, choices=[t.value for t in Topic])
    parser.add_argument("--source-date", required=True, help="YYYY-MM-DD")
    parser.add_argument("--language", default="en", choices=[lang.value for lang in Language])
    parser.add_argument("--description", default=None)
    parser.add_argument("--server", default="http://localhost:8000")
    return parser


def build_form(args: argparse.Namespace, image: PreparedImage) -> tuple[dict, dict]:
    data = {
        "platform": args.platform,
        "topic": args.topic,
        "source_date": args.source_date,
        "language": args.language,
        "honeypot": "",
    }
    if args.description:
        data["description"] = args.description
    files = {"image": (image.filename, image.data, image.content_type)}
    return data, files


async def post_submission(
    server: str,
    data: dict,
    files: dict,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.Response:
    async with httpx.AsyncClient(base_url=server, timeout=30, transport=transport) as client:
        return await client.post("/api/submit", data=data, files=files)


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = _build_parser().parse_args(argv)

    try:
        prepared = prepare_image(args.image.read_bytes(), filename=args.image.name)
    except PreprocessError as exc:
        logger.error(_LOCAL_ERRORS[exc.cause])
        return 2
    if prepared.resized:
        logger.info("resized to %sx%s", prepared.width, prepared.height)

    data, files = build_form(args, prepared)
    response = asyncio.run(post_submission(args.server, data, files))
    if response.status_code == 201:
        logger.info("Submitted. It will appear once a moderator approves it.")
        return 0

    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = f"HTTP {response.status_code}"
    logger.error("Submission refused: %s", message)
    return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
