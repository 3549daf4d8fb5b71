"""Release resolvers for the supported registries."""

from .base import ReleaseResolver, filter_candidates, rank_candidates
from .curseforge import CurseForgeReleaseResolver
from .modrinth import ModrinthReleaseResolver

__all__ = [
    "ReleaseResolver",
    "CurseForgeReleaseResolver",
    "ModrinthReleaseResolver",
    "filter_candidates",
    "rank_candidates",
]
