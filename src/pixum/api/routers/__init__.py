"""API routers.

Order matters: health comes first so its fixed paths win over the
catch-all /{work_id}/{index} artwork route.
"""

from pixum.api.routers import artworks, health

__all__ = ["artworks", "health"]
