"""Domain ports (interfaces) for dependency inversion."""

from pixum.domain.ports.artwork_upstream import IArtworkUpstream

__all__ = ["IArtworkUpstream"]
