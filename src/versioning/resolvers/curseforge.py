"""CurseForge release resolver.

The project's ``latestFilesIndexes`` is the fast path: it already names the
newest file per game version, loader and release type. When it has nothing
for the request, the paginated files listing is searched instead.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from registry.curseforge import REGISTRY_NAME, CurseForgeClient, parse_project_id

from ..extract import extract_version
from ..models import (
    ReleaseCandidate,
    Resolution,
    cf_loader_code_from_name,
    cf_loader_from_code,
    cf_release_tier,
    loader_name_to_tag,
    parse_timestamp,
)
from .base import ReleaseResolver

logger = logging.getLogger(__name__)

_LOADER_LABELS = {"Forge", "NeoForge", "Fabric", "Quilt", "LiteLoader", "Rift"}


def candidate_from_index(entry: Dict[str, Any]) -> Optional[ReleaseCandidate]:
    """Candidate from one ``latestFilesIndexes`` entry; None if it lacks ids."""
    file_id = entry.get("fileId")
    game_version = entry.get("gameVersion")
    if not isinstance(file_id, int) or not isinstance(game_version, str):
        return None
    filename = str(entry.get("filename") or "")
    return ReleaseCandidate(
        id=file_id,
        display_name=filename,
        file_name=filename,
        release_tier=cf_release_tier(entry.get("releaseType")),
        platform_versions=frozenset({game_version}),
        loaders=frozenset({cf_loader_from_code(entry.get("modLoader")).value}),
    )


def candidate_from_file(item: Dict[str, Any], loader: str) -> Optional[ReleaseCandidate]:
    """Candidate from a ``/files`` item.

    The listing was already filtered by loader server-side, so ``loader`` is
    counted as supported alongside any loader labels in ``gameVersions``.
    """
    file_id = item.get("id")
    if not isinstance(file_id, int):
        return None
    game_versions = [str(v) for v in item.get("gameVersions") or []]
    loaders = {v for v in game_versions if v in _LOADER_LABELS}
    loaders.add(loader_name_to_tag(loader))
    file_name = str(item.get("fileName") or "")
    return ReleaseCandidate(
        id=file_id,
        display_name=str(item.get("displayName") or file_name),
        file_name=file_name,
        release_tier=cf_release_tier(item.get("releaseType")),
        platform_versions=frozenset(game_versions),
        loaders=frozenset(loaders),
        published_at=parse_timestamp(item.get("fileDate")),
    )


class CurseForgeReleaseResolver(ReleaseResolver):
    """Resolver for CurseForge projects (numeric project ids)."""

    registry = REGISTRY_NAME

    def __init__(self, client: CurseForgeClient, use_cache: bool = False):
        self.client = client
        self.use_cache = use_cache

    async def fetch_latest_index_candidates(self, project_id: int) -> List[ReleaseCandidate]:
        indexes = await self.client.get_latest_indexes(project_id)
        return [c for c in (candidate_from_index(idx) for idx in indexes) if c is not None]

    async def fetch_file_candidates(
        self, project_id: int, platform_version: str, loader: str
    ) -> List[ReleaseCandidate]:
        code = cf_loader_code_from_name(loader)
        if code is None:
            return []
        files = await self.client.get_files(project_id, platform_version, code, self.use_cache)
        return [c for c in (candidate_from_file(f, loader) for f in files) if c is not None]

    async def fetch_candidates(
        self, project_id: str, platform_version: str, loader: str
    ) -> List[ReleaseCandidate]:
        """Latest-file indexes, or the full file listing when those have no match."""
        pid = parse_project_id(project_id)
        candidates = await self.fetch_latest_index_candidates(pid)
        if self.pick(candidates, platform_version, loader) is not None:
            return candidates
        logger.debug("No indexed file for %s %s/%s; scanning file listing", pid, platform_version, loader)
        return candidates + await self.fetch_file_candidates(pid, platform_version, loader)

    def describe(self, candidate: ReleaseCandidate) -> Resolution:
        version = extract_version(candidate.file_name) or str(candidate.id)
        return Resolution(id=candidate.id, display_version=version, release_tier=candidate.release_tier)
