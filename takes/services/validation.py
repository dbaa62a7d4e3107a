"""Field-level rules for a new submission.

``validate_submission`` is pure: no I/O, the caller supplies ``today``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from takes.models.submission import DESCRIPTION_MAX_LENGTH, Language, Platform, Topic
from takes.services.image_preprocess import ALLOWED_TYPES, sniff_image_type

SERVER_MAX_BYTES = 5 * 1024 * 1024

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SAFE_EXT = re.compile(r"^[a-z0-9]{1,5}$")
_DEFAULT_EXT = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


@dataclass(frozen=True)
class UploadedImage:
    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class RawSubmission:
    """Form fields exactly as received, before any interpretation."""

    image: UploadedImage | None = None
    platform: str | None = None
    source_date: str | None = None
    topic: str | None = None
    language: str | None = None
    description: str | None = None
    honeypot: str | None = None


@dataclass(frozen=True)
class FieldError:
    field: str
    code: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "code": self.code, "message": self.message}


@dataclass(frozen=True)
class SubmissionDraft:
    image: UploadedImage
    content_type: str
    extension: str
    platform: Platform
    source_date: date
    topic: Topic
    language: Language
    description: str | None


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)
    submission: SubmissionDraft | None = None

    @property
    def ok(self) -> bool:
        return not self.errors


def parse_iso_date(value: str) -> date | None:
    value = value.strip()
    if not _ISO_DATE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def safe_extension(filename: str, content_type: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if _SAFE_EXT.match(ext):
        return ext
    return _DEFAULT_EXT.get(content_type, "jpg")


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _enum_value(enum_cls, raw: str):
    try:
        return enum_cls(raw.strip())
    except ValueError:
        return None


def validate_submission(
    raw: RawSubmission, *, today: date, max_bytes: int = SERVER_MAX_BYTES
) -> ValidationResult:
    result = ValidationResult()
    errors = result.errors

    image = raw.image if raw.image is not None and raw.image.size > 0 else None
    required = {
        "image": image is None,
        "platform": _blank(raw.platform),
        "source_date": _blank(raw.source_date),
        "topic": _blank(raw.topic),
    }
    for name, is_missing in required.items():
        if is_missing:
            errors.append(FieldError(name, "missing_field", "Missing required fields."))
    if errors:
        return result

    assert image is not None
    content_type = None
    if image.content_type not in ALLOWED_TYPES:
        errors.append(
            FieldError(
                "image",
                "invalid_format",
                "Invalid image format. Only JPG, PNG, and WebP allowed.",
            )
        )
    elif image.size > max_bytes:
        errors.append(
            FieldError("image", "too_large", f"Image too large. Max {max_bytes // 1024 // 1024} MB.")
        )
    else:
        content_type = sniff_image_type(image.data)
        if content_type is None:
            errors.append(
                FieldError(
                    "image",
                    "invalid_format",
                    "Invalid image format. Only JPG, PNG, and WebP allowed.",
                )
            )

    platform = _enum_value(Platform, raw.platform or "")
    if platform is None:
        errors.append(FieldError("platform", "invalid_platform", "Invalid platform."))

    topic = _enum_value(Topic, raw.topic or "")
    if topic is None:
        errors.append(FieldError("topic", "invalid_topic", "Invalid topic."))

    # unknown or missing language silently falls back to English
    language = _enum_value(Language, raw.language or "") or Language.en

    source_date = parse_iso_date(raw.source_date or "")
    if source_date is None:
        errors.append(FieldError("source_date", "invalid_date", "Invalid date."))
    elif source_date > today:
        errors.append(FieldError("source_date", "future_date", "Date cannot be in the future."))

    description = None if _blank(raw.description) else raw.description.strip()
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        errors.append(
            FieldError(
                "description",
                "too_long",
                f"Description too long. Max {DESCRIPTION_MAX_LENGTH} characters.",
            )
        )

    if errors:
        return result

    result.submission = SubmissionDraft(
        image=image,
        content_type=content_type,
        extension=safe_extension(image.filename, content_type),
        platform=platform,
        source_date=source_date,
        topic=topic,
        language=language,
        description=description,
    )
    return result
