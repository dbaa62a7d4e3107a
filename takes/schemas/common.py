# takes/schemas/common.py
from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    code: str = Field(description="Machine readable reason")
    message: str = Field(description="Human readable message")
    field: str | None = Field(default=None, description="Offending form field, if any")


class ErrorResponse(BaseModel):
    error: ErrorBody

    model_config = {
        "json_schema_extra": {
            "examples": [{"error": {"code": "invalid_topic", "message": "Invalid topic."}}]
        }
    }


class OkResponse(BaseModel):
    ok: bool = Field(description="Always true")

    model_config = {"json_schema_extra": {"examples": [{"ok": True}]}}
