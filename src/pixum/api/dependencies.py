"""Dependency injection for API routes.

Hey future me - routes never build services themselves! Everything comes out of the
AppContext the lifespan put on app.state. Use these in endpoint params like:
"service: ArtworkRetrievalService = Depends(get_retrieval_service)".
"""

import re

from fastapi import Depends, Request

from pixum.application.services import ArtworkRetrievalService
from pixum.domain.exceptions import InternalError, InvalidUrlError
from pixum.domain.value_objects import MAX_ARTWORK_ID, MAX_IMAGE_INDEX
from pixum.infrastructure.lifecycle import AppContext

# Plain decimal digits only: no sign, no whitespace, no underscores (int() would
# happily accept " +1_0 ").
_DIGITS = re.compile(r"[0-9]+")


def get_app_context(request: Request) -> AppContext:
    """Return the shared AppContext.

    Raises:
        InternalError: The lifespan did not (or no longer) provide a context
    """
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise InternalError("Application context is not initialized")
    return context


def get_retrieval_service(
    context: AppContext = Depends(get_app_context),
) -> ArtworkRetrievalService:
    return context.retrieval_service


def _parse_segment(raw: str, upper_bound: int) -> int:
    if not _DIGITS.fullmatch(raw):
        raise InvalidUrlError()
    value = int(raw)
    if value > upper_bound:
        raise InvalidUrlError()
    return value


# work_id 0 is not a work. index 0 parses fine here on purpose: the retrieval service
# answers it with the more helpful ZeroQueryError.
def parse_artwork_id(work_id: str) -> int:
    """Validate the {work_id} path segment.

    Raises:
        InvalidUrlError: Not a positive integer within the upstream id range
    """
    artwork_id = _parse_segment(work_id, MAX_ARTWORK_ID)
    if artwork_id == 0:
        raise InvalidUrlError()
    return artwork_id


def parse_image_index(index: str) -> int:
    """Validate the {index} path segment (0 allowed, see above).

    Raises:
        InvalidUrlError: Not a non-negative integer within the index range
    """
    return _parse_segment(index, MAX_IMAGE_INDEX)
