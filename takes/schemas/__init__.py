from .common import ErrorResponse, OkResponse
from .price import Currency, PriceResponse
from .submission import (
    AdminListResponse,
    GalleryPage,
    ReviewDecision,
    ReviewResult,
    ReviewUpdateRequest,
    SubmissionAdmin,
    SubmissionPublic,
    SubmitAccepted,
)

__all__ = [
    "ErrorResponse",
    "OkResponse",
    "Currency",
    "PriceResponse",
    "AdminListResponse",
    "GalleryPage",
    "ReviewDecision",
    "ReviewResult",
    "ReviewUpdateRequest",
    "SubmissionAdmin",
    "SubmissionPublic",
    "SubmitAccepted",
]
