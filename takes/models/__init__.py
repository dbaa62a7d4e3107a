# Imported by Alembic so the metadata is populated
from .base import Base
from .submission import Language, Platform, Submission, SubmissionStatus, Topic

__all__ = [
    "Base",
    "Submission",
    "SubmissionStatus",
    "Platform",
    "Topic",
    "Language",
]
