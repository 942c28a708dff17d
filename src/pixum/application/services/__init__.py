"""Application services."""

from pixum.application.services.artwork_retrieval_service import (
    ArtworkRetrievalService,
)

__all__ = ["ArtworkRetrievalService"]
