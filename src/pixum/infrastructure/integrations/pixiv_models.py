"""Pydantic models for the upstream /ajax/illust/{id} response.

Hey future me - the upstream has NO discriminator between success and error bodies!
Both look like {"error": ..., "message": ..., "body": ...}; on success body is an
object, on failure it's usually an empty list. So decoding is an explicit two-step
fallback (parse_illust_response): try the success shape first, and only if that
doesn't validate, try the error shape. If neither fits, the body is garbage and the
caller treats it as an unreachable upstream.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class IllustUrls(BaseModel):
    """Asset URLs of the first image. original is null for some works."""

    original: str | None = None


class UserIllust(BaseModel):
    """Entry of the author's work list; only the thumbnail url matters to us."""

    url: str | None = None


class IllustBody(BaseModel):
    """Success payload."""

    model_config = ConfigDict(populate_by_name=True)

    # Reported image count. One higher than the real count!
    sl: int
    urls: IllustUrls
    user_illusts: dict[str, UserIllust | None] = Field(
        default_factory=dict, alias="userIllusts"
    )


class IllustSuccessResponse(BaseModel):
    """Response carrying a success payload (error may still be true)."""

    error: bool
    message: str | None = None
    body: IllustBody


class IllustErrorResponse(BaseModel):
    """Response without a usable payload."""

    error: bool
    message: str | None = None
    body: Any = None


IllustResponse = IllustSuccessResponse | IllustErrorResponse


def parse_illust_response(data: Any) -> IllustResponse:
    """Decode an upstream body into the success or the error shape.

    Args:
        data: Decoded JSON document

    Returns:
        IllustSuccessResponse if the success shape matches, else IllustErrorResponse

    Raises:
        pydantic.ValidationError: If the body matches neither shape
    """
    try:
        return IllustSuccessResponse.model_validate(data)
    except ValidationError:
        return IllustErrorResponse.model_validate(data)
