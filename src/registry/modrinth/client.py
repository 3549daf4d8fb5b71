"""Modrinth API client: project briefs and version listings."""
from __future__ import annotations

import json
import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

from constants import Constants
from common.errors import MalformedInputError

logger = logging.getLogger(__name__)

REGISTRY_NAME = "Modrinth"


def versions_cache_key(slug: str) -> str:
    return f"mr-versions-{slug}"


def _require_version_list(body: Any) -> List[Dict[str, Any]]:
    if not isinstance(body, list):
        raise MalformedInputError("Modrinth parse error: version listing is not a list")
    return [item for item in body if isinstance(item, dict)]


class ModrinthClient:
    """Thin async wrapper over the Modrinth v2 REST API.

    Args:
        http: Object with an async ``get_json(url, registry=..., headers=...)``.
        cache: Optional object with ``get(key)`` / ``set(key, value, ttl)``.
    """

    def __init__(self, http: Any, cache: Any = None):
        self._http = http
        self._cache = cache

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{Constants.MODRINTH_API_BASE}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        return await self._http.get_json(url, registry=REGISTRY_NAME)

    async def get_project_brief(self, slug: str) -> Tuple[str, Optional[str]]:
        """Return (title, icon URL) of a project."""
        body = await self._get(f"/project/{urllib.parse.quote(slug, safe='')}")
        if not isinstance(body, dict) or not isinstance(body.get("title"), str):
            raise MalformedInputError(f"Modrinth parse error: project {slug} has no title")
        logger.info("mr_mod_brief %s %s", body["title"], body.get("icon_url") or "")
        return body["title"], body.get("icon_url")

    async def fetch_versions(self, slug: str) -> List[Dict[str, Any]]:
        """Every version of a project, newest first as served; refreshes the cache."""
        body = await self._get(f"/project/{urllib.parse.quote(slug, safe='')}/version")
        versions = _require_version_list(body)
        if self._cache is not None:
            self._cache.set(versions_cache_key(slug), versions, Constants.REGISTRY_CACHE_TTL_SEC)
        return versions

    async def get_versions(self, slug: str, use_cache: bool = False) -> List[Dict[str, Any]]:
        """Every version of a project, from the cache when allowed and fresh."""
        if use_cache and self._cache is not None:
            cached = self._cache.get(versions_cache_key(slug))
            if cached is not None:
                logger.debug("Modrinth versions of %s served from cache", slug)
                return cached
        return await self.fetch_versions(slug)

    async def get_versions_filtered(
        self, slug: str, mc_version: str, loader: str, use_cache: bool = False
    ) -> List[Dict[str, Any]]:
        """Versions of a project for one game version and loader.

        With ``use_cache`` the full cached listing is filtered locally;
        otherwise the API filters server-side.
        """
        loader_lower = loader.lower()
        if use_cache:
            versions = await self.get_versions(slug, use_cache=True)
            return [
                v for v in versions
                if mc_version in (v.get("game_versions") or [])
                and any(str(name).lower() == loader_lower for name in (v.get("loaders") or []))
            ]
        body = await self._get(
            f"/project/{urllib.parse.quote(slug, safe='')}/version",
            {
                "game_versions": json.dumps([mc_version]),
                "loaders": json.dumps([loader_lower]),
            },
        )
        return _require_version_list(body)
