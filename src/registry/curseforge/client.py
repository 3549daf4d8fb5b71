"""CurseForge API client: project metadata, latest-file indexes and file listings."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple, Union

from constants import Constants
from common.errors import MalformedInputError
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)

REGISTRY_NAME = "CurseForge"


def parse_project_id(project_id: Union[str, int], what: str = "Project ID") -> int:
    """CurseForge ids are numeric.

    Raises:
        MalformedInputError: ``project_id`` is not a non-negative integer.
    """
    if isinstance(project_id, int):
        return project_id
    text = str(project_id).strip()
    if not text.isdigit():
        raise MalformedInputError(f"{what} must be a number for CurseForge: {project_id!r}")
    return int(text)


def files_cache_key(project_id: int, mc_version: str, loader_code: int) -> str:
    return f"cf-files-{project_id}-{mc_version}-{loader_code}"


class CurseForgeClient:
    """Thin async wrapper over the CurseForge v1 REST API.

    Args:
        http: Object with an async ``get_json(url, registry=..., headers=...)``.
        api_key: Value for the ``x-api-key`` header.
        cache: Optional object with ``get(key)`` / ``set(key, value, ttl)``.
    """

    def __init__(self, http: Any, api_key: str, cache: Any = None):
        self._http = http
        self._api_key = api_key
        self._cache = cache

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{Constants.CURSEFORGE_API_BASE}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        return await self._http.get_json(
            url, registry=REGISTRY_NAME, headers={"x-api-key": self._api_key}
        )

    async def get_mod(self, project_id: int) -> Dict[str, Any]:
        """``data`` object of ``GET /mods/{id}``."""
        body = await self._get(f"/mods/{project_id}")
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise MalformedInputError(f"CurseForge parse error: mod {project_id} response has no data object")
        return data

    async def get_project_meta(self, project_id: int) -> Tuple[str, int]:
        """Return (slug, numeric id) of a project."""
        data = await self.get_mod(project_id)
        slug, mod_id = data.get("slug"), data.get("id")
        if not isinstance(slug, str) or not isinstance(mod_id, int):
            raise MalformedInputError(f"CurseForge parse error: mod {project_id} lacks slug/id")
        return slug, mod_id

    async def get_mod_brief(self, project_id: int) -> Tuple[str, Optional[str]]:
        """Return (display name, icon URL) of a project."""
        data = await self.get_mod(project_id)
        logo = data.get("logo")
        icon = (logo.get("thumbnailUrl") or logo.get("url")) if isinstance(logo, dict) else None
        name = str(data.get("name") or data.get("slug") or project_id)
        logger.info("cf_mod_brief %s %s", name, icon or "")
        return name, icon

    async def get_latest_indexes(self, project_id: int) -> List[Dict[str, Any]]:
        """``latestFilesIndexes`` of a project: newest file per game version and loader."""
        data = await self.get_mod(project_id)
        indexes = data.get("latestFilesIndexes", [])
        if not isinstance(indexes, list):
            raise MalformedInputError("CurseForge parse error: latestFilesIndexes is not a list")
        return [idx for idx in indexes if isinstance(idx, dict)]

    async def get_files(
        self,
        project_id: int,
        mc_version: str,
        loader_code: int,
        use_cache: bool = False,
    ) -> List[Dict[str, Any]]:
        """All files of a project for one game version and loader.

        Pages of ``CF_FILES_PAGE_SIZE`` are fetched until a short page or
        ``CF_FILES_MAX`` files have been collected.
        """
        key = files_cache_key(project_id, mc_version, loader_code)
        if use_cache and self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                if is_debug_enabled(logger):
                    logger.debug("Cache hit", extra=extra_context(event="cache_hit", target=key))
                return cached

        page_size = Constants.CF_FILES_PAGE_SIZE
        index = 0  # item offset, not page number
        files: List[Dict[str, Any]] = []
        while True:
            body = await self._get(
                f"/mods/{project_id}/files",
                {
                    "gameVersion": mc_version,
                    "modLoaderType": loader_code,
                    "pageSize": page_size,
                    "index": index,
                },
            )
            page = body.get("data") if isinstance(body, dict) else None
            if not isinstance(page, list):
                raise MalformedInputError("CurseForge files parse error: data is not a list")
            files.extend(item for item in page if isinstance(item, dict))
            if len(page) < page_size or len(files) >= Constants.CF_FILES_MAX:
                break
            index += page_size

        logger.debug("Fetched %d CurseForge files for %s (%s)", len(files), project_id, mc_version)
        if use_cache and self._cache is not None:
            self._cache.set(key, files, Constants.REGISTRY_CACHE_TTL_SEC)
        return files
