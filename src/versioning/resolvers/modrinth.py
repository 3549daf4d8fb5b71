"""Modrinth release resolver."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from registry.modrinth import REGISTRY_NAME, ModrinthClient

from ..models import ReleaseCandidate, Resolution, loader_name_to_tag, mr_release_tier, parse_timestamp
from .base import ReleaseResolver


def candidate_from_version(version: Dict[str, Any]) -> Optional[ReleaseCandidate]:
    """Candidate from one Modrinth version object; None if it has no id."""
    version_id = version.get("id")
    if not isinstance(version_id, str):
        return None
    number = str(version.get("version_number") or version_id)
    files = version.get("files") or []
    primary = next((f for f in files if isinstance(f, dict) and f.get("primary")), None)
    if primary is None and files and isinstance(files[0], dict):
        primary = files[0]
    return ReleaseCandidate(
        id=version_id,
        display_name=number,
        file_name=str(primary.get("filename") or "") if primary else "",
        release_tier=mr_release_tier(version.get("version_type")),
        platform_versions=frozenset(str(v) for v in version.get("game_versions") or []),
        loaders=frozenset(loader_name_to_tag(str(name)) for name in version.get("loaders") or []),
        published_at=parse_timestamp(version.get("date_published")),
    )


class ModrinthReleaseResolver(ReleaseResolver):
    """Resolver for Modrinth projects (slug or id)."""

    registry = REGISTRY_NAME

    def __init__(self, client: ModrinthClient, use_cache: bool = False):
        self.client = client
        self.use_cache = use_cache

    async def fetch_candidates(
        self, project_id: str, platform_version: str, loader: str
    ) -> List[ReleaseCandidate]:
        """Every version of the project; filtering happens in ``pick``."""
        versions = await self.client.get_versions(project_id, use_cache=self.use_cache)
        return [c for c in (candidate_from_version(v) for v in versions) if c is not None]

    def describe(self, candidate: ReleaseCandidate) -> Resolution:
        return Resolution(
            id=candidate.id,
            display_version=candidate.display_name,
            release_tier=candidate.release_tier,
        )
