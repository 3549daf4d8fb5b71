"""Base class for registry release resolvers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from ..models import TIER_PRIORITY, ReleaseCandidate, Resolution, loader_name_to_tag

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _recency_key(candidate: ReleaseCandidate) -> Tuple[datetime, int]:
    published = candidate.published_at or _EPOCH
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    numeric_id = candidate.id if isinstance(candidate.id, int) else -1
    return published, numeric_id


def filter_candidates(
    candidates: Iterable[ReleaseCandidate], platform_version: str, loader: str
) -> List[ReleaseCandidate]:
    """Candidates declaring both ``platform_version`` and ``loader``."""
    loader_tag = loader_name_to_tag(loader)
    return [
        c for c in candidates
        if platform_version in c.platform_versions and loader_tag in c.loaders
    ]


def rank_candidates(candidates: Iterable[ReleaseCandidate]) -> List[ReleaseCandidate]:
    """Order by tier (Release > Beta > Alpha), then newest first.

    Unknown-tier candidates are dropped.
    """
    newest_first = sorted(candidates, key=_recency_key, reverse=True)
    return [c for tier in TIER_PRIORITY for c in newest_first if c.release_tier is tier]


class ReleaseResolver(ABC):
    """Selects the best release of a project for a platform version and loader.

    Subclasses implement the registry I/O in ``fetch_candidates`` and how a
    chosen candidate is displayed in ``describe``; the selection policy in
    ``pick`` is shared and pure.
    """

    registry: str = ""

    @abstractmethod
    async def fetch_candidates(
        self, project_id: str, platform_version: str, loader: str
    ) -> List[ReleaseCandidate]:
        """Fetch candidate releases for the project."""

    @abstractmethod
    def describe(self, candidate: ReleaseCandidate) -> Resolution:
        """Turn the chosen candidate into a Resolution."""

    def pick(
        self, candidates: Iterable[ReleaseCandidate], platform_version: str, loader: str
    ) -> Optional[ReleaseCandidate]:
        """Best matching candidate, or None."""
        ranked = rank_candidates(filter_candidates(candidates, platform_version, loader))
        return ranked[0] if ranked else None

    async def resolve(
        self, project_id: str, platform_version: str, loader: str
    ) -> Optional[Resolution]:
        """Fetch, filter and rank; None when nothing matches."""
        candidates = await self.fetch_candidates(project_id, platform_version, loader)
        chosen = self.pick(candidates, platform_version, loader)
        if chosen is None:
            logger.info(
                "%s: no release of %s for %s / %s among %d candidates",
                self.registry, project_id, platform_version, loader, len(candidates),
            )
            return None
        return self.describe(chosen)
