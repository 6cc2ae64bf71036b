"""Exception types raised while compositing images and generating AI content."""

from __future__ import annotations

from typing import Any


class FotixError(Exception):
    """Base class for every error surfaced to the UI."""

    code = "FOTIX_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self), "details": self.details}


class DecodeError(FotixError):
    """The uploaded bytes could not be read as an image."""

    code = "DECODE_ERROR"


class ContextError(FotixError):
    """A drawing canvas could not be allocated for a target."""

    code = "CONTEXT_ERROR"


class EncodeError(FotixError):
    """A rendered canvas could not be serialized to JPEG."""

    code = "ENCODE_ERROR"


class AiGenerationError(FotixError):
    """The hosted model failed to return product content."""

    code = "AI_GENERATION_ERROR"
