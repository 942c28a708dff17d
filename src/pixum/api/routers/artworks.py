"""Artwork endpoints.

Hey future me - the two public routes of the gateway:

- GET /{work_id}          -> text/plain URL of the first image (diagnostics)
- GET /{work_id}/{index}  -> the image itself, 1-based index

Path segments are taken as raw strings and validated by the parse_* dependencies,
so "abc", "-1" or "1.5" give our own "invalid URL" 404 instead of FastAPI's 422.
All the interesting logic lives in ArtworkRetrievalService.
"""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from pixum.api.dependencies import (
    get_retrieval_service,
    parse_artwork_id,
    parse_image_index,
)
from pixum.application.services import ArtworkRetrievalService

router = APIRouter(tags=["Artworks"])


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def welcome() -> str:
    return "Welcome to Pixum"


@router.get(
    "/{work_id}",
    response_class=PlainTextResponse,
    summary="Resolve the asset URL of the first image of a work",
)
async def artwork_info(
    artwork_id: int = Depends(parse_artwork_id),
    service: ArtworkRetrievalService = Depends(get_retrieval_service),
) -> str:
    """Return the direct asset URL of the first image."""
    return await service.resolve_first_url(artwork_id)


@router.get(
    "/{work_id}/{index}",
    response_class=Response,
    summary="Download one image of a work",
    responses={200: {"content": {"image/*": {}}}},
)
async def artwork_source(
    artwork_id: int = Depends(parse_artwork_id),
    index: int = Depends(parse_image_index),
    service: ArtworkRetrievalService = Depends(get_retrieval_service),
) -> Response:
    """Return the bytes of image `index` (1-based) of a work."""
    artwork = await service.retrieve(artwork_id, index)
    return Response(
        content=artwork.content,
        media_type=artwork.media_type,
        headers={
            "Content-Disposition": artwork.content_disposition,
            "Access-Control-Allow-Headers": "GET",
        },
    )
