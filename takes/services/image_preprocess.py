"""Client-side image preparation.

Runs before anything is sent to the server: rejects files of the wrong type
or size and shrinks wide screenshots. Nothing here touches the network.
"""

from __future__ import annotations

import base64
import io
import logging
import mimetypes
from dataclasses import dataclass
from typing import Literal

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_TYPES = ("image/jpeg", "image/png", "image/webp")
CLIENT_MAX_BYTES = 500 * 1024
MAX_WIDTH = 1400
JPEG_QUALITY = 75

_PIL_FORMATS = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}
_SAVE_FORMATS = {v: k for k, v in _PIL_FORMATS.items()}


class PreprocessError(ValueError):
    def __init__(self, cause: Literal["format", "size"]) -> None:
        super().__init__(cause)
        self.cause = cause


@dataclass(frozen=True)
class PreparedImage:
    data: bytes
    filename: str
    content_type: str
    width: int | None = None
    height: int | None = None
    resized: bool = False

    def preview_data_url(self) -> str:
        return f"data:{self.content_type};base64,{base64.b64encode(self.data).decode()}"


def sniff_image_type(data: bytes) -> str | None:
    """MIME type of ``data`` when Pillow recognises it as an allowed format."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _PIL_FORMATS.get(img.format or "")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None


def _guess_type(filename: str) -> str | None:
    guessed, _ = mimetypes.guess_type(filename)
    return guessed


def downscale(data: bytes, content_type: str) -> tuple[bytes, int | None, int | None, bool]:
    """Shrink to MAX_WIDTH keeping the aspect ratio; best-effort.

    Returns ``(data, width, height, resized)``. Any decode or encode failure
    hands back the original bytes.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            if width <= MAX_WIDTH:
                return data, width, height, False
            ratio = MAX_WIDTH / width
            new_size = (MAX_WIDTH, max(1, round(height * ratio)))
            resized = img.resize(new_size, resample=Image.Resampling.LANCZOS)
            fmt = _SAVE_FORMATS[content_type]
            if fmt == "JPEG" and resized.mode not in ("RGB", "L"):
                resized = resized.convert("RGB")
            out = io.BytesIO()
            if fmt == "PNG":
                resized.save(out, format=fmt, optimize=True)
            else:
                resized.save(out, format=fmt, quality=JPEG_QUALITY)
            return out.getvalue(), new_size[0], new_size[1], True
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
        KeyError,
    ) as exc:
        logger.warning("downscale skipped: %s", exc)
        return data, None, None, False


def prepare_image(data: bytes, *, filename: str, content_type: str | None = None) -> PreparedImage:
    content_type = content_type or _guess_type(filename)
    if content_type not in ALLOWED_TYPES:
        raise PreprocessError("format")
    if len(data) > CLIENT_MAX_BYTES:
        raise PreprocessError("size")

    out, width, height, resized = downscale(data, content_type)
    return PreparedImage(
        data=out,
        filename=filename,
        content_type=content_type,
        width=width,
        height=height,
        resized=resized,
    )
