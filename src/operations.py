"""User-facing operations: resolve releases and patch a Gradle build script.

Every operation is a coroutine. Registry I/O goes through one
``AsyncHttpClient`` per call (pass ``http=`` to reuse or substitute one).
The build script is read once up front and written at most once at the end,
so a failure never leaves a half-patched file behind.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from buildscript import (
    compose_dependency_line,
    curse_coordinate,
    ensure_curse_maven_repo,
    ensure_modrinth_maven_repo,
    modrinth_coordinate,
    upsert_curse_dependency,
    upsert_modrinth_dependency,
)
from cli_config import resolve_cf_api_key
from common.async_http import AsyncHttpClient
from common.errors import ModDepsError, NoMatchingReleaseError, UnknownRegistryError
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, Registries
from registry.curseforge import CurseForgeClient, parse_project_id
from registry.modrinth import ModrinthClient
from versioning.cache import FileCache
from versioning.extract import strip_jar_suffix
from versioning.models import (
    Loader,
    ReleaseTier,
    VersionChoice,
    cf_loader_code_from_name,
    cf_loader_from_code,
    cf_release_tier,
    loader_name_to_tag,
    mr_release_tier,
)
from versioning.platform import order_versions, order_versions_fuzzy, refresh_version_index
from versioning.resolvers import CurseForgeReleaseResolver, ModrinthReleaseResolver, ReleaseResolver

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")

_TIER_WARNINGS = {
    ReleaseTier.BETA: "⚠ Beta Build used\n",
    ReleaseTier.ALPHA: "⚠ Alpha Build used\n",
}


def parse_source(source: str) -> Registries:
    """Map a user-supplied source name to a registry (case-insensitive)."""
    try:
        return Registries(str(source).strip().lower())
    except ValueError as exc:
        raise UnknownRegistryError(source) from exc


def require_build_script(gradle_path: str) -> Path:
    """Path of an existing build script; FileNotFoundError otherwise."""
    path = Path(gradle_path)
    if not path.is_file():
        raise FileNotFoundError(f"Build.gradle file not found at {path}")
    return path


def read_build_script(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def write_build_script(path: Path, text: str) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
    logger.info("Wrote %s", path)


@dataclass
class RegistrySession:
    """Clients and resolver for one registry, sharing one HTTP client."""

    registry: Registries
    resolver: ReleaseResolver
    curseforge: Optional[CurseForgeClient] = None
    modrinth: Optional[ModrinthClient] = None

    @property
    def is_curseforge(self) -> bool:
        return self.registry is Registries.CURSEFORGE


@asynccontextmanager
async def open_session(
    source: str,
    cf_api_key: Optional[str] = None,
    use_cache: bool = False,
    http: Any = None,
    cache: Any = None,
) -> AsyncIterator[RegistrySession]:
    """Build the registry session for ``source``.

    Source and API key are validated before any connection is opened. A
    client passed as ``http`` is used as-is and left open.
    """
    registry = parse_source(source)
    api_key = resolve_cf_api_key(cf_api_key) if registry is Registries.CURSEFORGE else None
    if cache is None:
        cache = FileCache()

    owned = http is None
    if owned:
        http = AsyncHttpClient()
        await http.start()
    try:
        if registry is Registries.CURSEFORGE:
            cf = CurseForgeClient(http, api_key, cache=cache)
            yield RegistrySession(registry, CurseForgeReleaseResolver(cf, use_cache), curseforge=cf)
        else:
            mr = ModrinthClient(http, cache=cache)
            yield RegistrySession(registry, ModrinthReleaseResolver(mr, use_cache), modrinth=mr)
    finally:
        if owned:
            await http.stop()


async def gather_bounded(
    keys: Sequence[K], work: Callable[[K], Awaitable[T]]
) -> List[Tuple[K, Optional[T], Optional[BaseException]]]:
    """Run ``work`` for every key, at most MAX_CONCURRENCY at a time.

    Returns ``(key, result, error)`` in input order; a failing key does not
    affect the others.
    """
    semaphore = asyncio.Semaphore(max(1, Constants.MAX_CONCURRENCY))

    async def run(key: K) -> Tuple[K, Optional[T], Optional[BaseException]]:
        async with semaphore:
            try:
                return key, await work(key), None
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.warning("Item %s failed: %s", key, exc)
                return key, None, exc

    return list(await asyncio.gather(*(run(key) for key in keys)))


# ---------------------------------------------------------------------------
# Build-script mutations
# ---------------------------------------------------------------------------

@dataclass
class PlannedChange:
    """A resolved dependency ready to be written into the build script."""

    project_key: str
    slug: str
    release_id: str
    display_version: str = ""
    release_tier: ReleaseTier = ReleaseTier.RELEASE
    curse_project_id: Optional[int] = None
    dep_line: str = field(default="", init=False)

    def apply(self, text: str, loader: str) -> str:
        """Ensure the Maven repository and upsert the dependency line."""
        if self.curse_project_id is not None:
            coordinate = curse_coordinate(self.slug, self.curse_project_id, self.release_id)
            self.dep_line = compose_dependency_line(loader, coordinate)
            text = ensure_curse_maven_repo(text)
            return upsert_curse_dependency(text, self.curse_project_id, self.dep_line)
        coordinate = modrinth_coordinate(self.slug, self.release_id)
        self.dep_line = compose_dependency_line(loader, coordinate)
        text = ensure_modrinth_maven_repo(text)
        return upsert_modrinth_dependency(text, self.slug, self.dep_line)

    @property
    def id_label(self) -> str:
        return "File ID" if self.curse_project_id is not None else "Version ID"

    def tier_warning(self) -> str:
        return _TIER_WARNINGS.get(self.release_tier, "")

    def updated_message(self) -> str:
        return (
            f"{self.tier_warning()}✅ Updated Dependency: {self.dep_line}\n"
            f"🎉 New Version: {self.display_version} ({self.id_label}: {self.release_id})"
        )


async def plan_latest(
    session: RegistrySession, project_id: str, mc_version: str, loader: str
) -> PlannedChange:
    """Resolve the newest matching release of ``project_id``.

    Raises:
        NoMatchingReleaseError: no release fits ``mc_version`` and ``loader``.
    """
    if session.is_curseforge:
        pid = parse_project_id(project_id)
        slug, mod_id = await session.curseforge.get_project_meta(pid)
        resolution = await session.resolver.resolve(str(pid), mc_version, loader)
        if resolution is None:
            raise NoMatchingReleaseError(session.resolver.registry, mc_version, loader)
        return PlannedChange(
            project_key=project_id,
            slug=slug,
            release_id=str(resolution.id),
            display_version=resolution.display_version,
            release_tier=resolution.release_tier,
            curse_project_id=mod_id,
        )
    resolution = await session.resolver.resolve(project_id, mc_version, loader)
    if resolution is None:
        raise NoMatchingReleaseError(session.resolver.registry, mc_version, loader)
    return PlannedChange(
        project_key=project_id,
        slug=project_id,
        release_id=str(resolution.id),
        display_version=resolution.display_version,
        release_tier=resolution.release_tier,
    )


async def plan_selected(session: RegistrySession, project_id: str, selected_id: str) -> PlannedChange:
    """Plan a change to an explicitly chosen release."""
    if session.is_curseforge:
        pid = parse_project_id(project_id)
        file_id = parse_project_id(selected_id, what="Selected ID")
        slug, mod_id = await session.curseforge.get_project_meta(pid)
        return PlannedChange(project_id, slug, str(file_id), curse_project_id=mod_id)
    return PlannedChange(project_id, project_id, str(selected_id))


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

async def update_dependency(
    gradle_path: str,
    project_id: str,
    mc_version: str,
    loader: str,
    source: str,
    cf_api_key: Optional[str] = None,
    http: Any = None,
) -> str:
    """Point the build script at the newest release of one project.

    Returns:
        Human-readable report, prefixed with a warning for beta/alpha builds.
    """
    path = require_build_script(gradle_path)
    text = read_build_script(path)
    async with open_session(source, cf_api_key, http=http) as session:
        change = await plan_latest(session, project_id, mc_version, loader)
    text = change.apply(text, loader)
    write_build_script(path, text)
    logger.info(
        "Updated %s to %s", project_id, change.release_id,
        extra=extra_context(event="dependency_updated", registry=session.resolver.registry,
                            target=project_id, outcome=change.release_tier.value),
    )
    return change.updated_message()


async def apply_selected_version(
    gradle_path: str,
    source: str,
    project_id: str,
    loader: str,
    selected_id: str,
    cf_api_key: Optional[str] = None,
    http: Any = None,
) -> str:
    """Point the build script at a release the user picked."""
    path = require_build_script(gradle_path)
    text = read_build_script(path)
    async with open_session(source, cf_api_key, http=http) as session:
        change = await plan_selected(session, project_id, selected_id)
    text = change.apply(text, loader)
    write_build_script(path, text)
    return f"✅ Updated Dependency: {change.dep_line}\n🎉 Applied {change.id_label}: {change.release_id}"


async def apply_selected_versions_batch(
    gradle_path: str,
    source: str,
    selections: Sequence[Tuple[str, str]],
    loader: str,
    cf_api_key: Optional[str] = None,
    http: Any = None,
) -> str:
    """Apply several ``(project_id, selected_id)`` picks with a single write.

    Returns:
        One summary line per selection, in input order; failed selections
        are reported with a ``❌`` line and leave the script untouched.
    """
    path = require_build_script(gradle_path)
    text = read_build_script(path)
    pairs = list(selections)
    async with open_session(source, cf_api_key, http=http) as session:
        results = await gather_bounded(pairs, lambda pair: plan_selected(session, *pair))

    lines = []
    for (key, _), change, error in results:
        if error is None:
            try:
                text = change.apply(text, loader)
            except ModDepsError as exc:
                error = exc
        if error is not None:
            lines.append(f"❌ [{key}] {error}\n")
            continue
        lines.append(f"✅ {change.dep_line} → {change.id_label}: {change.release_id}\n")
    write_build_script(path, text)
    return "".join(lines)


async def update_dependencies_batch(
    gradle_path: str,
    source: str,
    items: Sequence[str],
    mc_version: str,
    loader: str,
    cf_api_key: Optional[str] = None,
    http: Any = None,
) -> Dict[str, str]:
    """Update many projects at once.

    Releases are resolved concurrently (bounded by MAX_CONCURRENCY), then
    applied in input order to one text that is written once.

    Returns:
        ``{item: report}`` in input order; failures carry a ``❌`` report.
    """
    path = require_build_script(gradle_path)
    text = read_build_script(path)
    async with open_session(source, cf_api_key, http=http) as session:
        results = await gather_bounded(
            list(items), lambda key: plan_latest(session, key, mc_version, loader)
        )

    reports: Dict[str, str] = {}
    for key, change, error in results:
        if error is None:
            try:
                text = change.apply(text, loader)
            except ModDepsError as exc:
                error = exc
        reports[key] = f"❌ {error}" if error is not None else change.updated_message()
    write_build_script(path, text)
    if is_debug_enabled(logger):
        logger.debug(
            "Batch update finished",
            extra=extra_context(event="batch_update", count=len(reports),
                                failed=sum(1 for _, _, e in results if e is not None)),
        )
    return reports


def _choice(release_id: Any, name: str, tier: ReleaseTier) -> VersionChoice:
    return VersionChoice(id=str(release_id), label=f"{name} ({tier.value})", kind=tier.value)


async def list_versions(
    source: str,
    project_id: str,
    mc_version: str,
    loader: str,
    cf_api_key: Optional[str] = None,
    use_cache: bool = False,
    http: Any = None,
) -> List[VersionChoice]:
    """Every release of a project for one game version and loader, newest first."""
    async with open_session(source, cf_api_key, use_cache=use_cache, http=http) as session:
        if session.is_curseforge:
            return await _list_curseforge_versions(session.curseforge, project_id, mc_version, loader, use_cache)
        return await _list_modrinth_versions(session.modrinth, project_id, mc_version, loader, use_cache)


async def _list_curseforge_versions(
    client: CurseForgeClient, project_id: str, mc_version: str, loader: str, use_cache: bool
) -> List[VersionChoice]:
    pid = parse_project_id(project_id)
    code = cf_loader_code_from_name(loader)
    if code is not None:
        files = await client.get_files(pid, mc_version, code, use_cache)
        files = [f for f in files if mc_version in (f.get("gameVersions") or [])]
        files.sort(key=lambda f: str(f.get("fileDate") or ""), reverse=True)
        return [
            _choice(f.get("id"), strip_jar_suffix(str(f.get("fileName") or "")), cf_release_tier(f.get("releaseType")))
            for f in files
        ]

    # Loaders without a files filter are only listed from the latest indexes.
    target = loader_name_to_tag(loader)
    indexes = [
        idx for idx in await client.get_latest_indexes(pid)
        if idx.get("gameVersion") == mc_version and cf_loader_from_code(idx.get("modLoader")).value == target
    ]
    indexes.sort(key=lambda idx: idx.get("releaseType") or 0)
    return [
        _choice(idx.get("fileId"), strip_jar_suffix(str(idx.get("filename") or "")), cf_release_tier(idx.get("releaseType")))
        for idx in indexes
    ]


async def _list_modrinth_versions(
    client: ModrinthClient, slug: str, mc_version: str, loader: str, use_cache: bool
) -> List[VersionChoice]:
    versions = await client.get_versions_filtered(slug, mc_version, loader, use_cache)
    loader_lower = loader.lower()
    matching = [
        v for v in versions
        if mc_version in (v.get("game_versions") or [])
        and any(str(name).lower() == loader_lower for name in (v.get("loaders") or []))
    ]
    matching.sort(key=lambda v: str(v.get("date_published") or ""), reverse=True)
    return [
        _choice(v.get("id"), str(v.get("version_number") or v.get("id")), mr_release_tier(v.get("version_type")))
        for v in matching
    ]


def _options(pairs: List[Tuple[str, str]], fuzzy: bool) -> Dict[str, Any]:
    """Versions, loaders and both cross-maps from (version, loader) pairs."""
    order = order_versions_fuzzy if fuzzy else order_versions
    version_to_loaders: Dict[str, set] = {}
    loader_to_versions: Dict[str, set] = {}
    for version, loader in pairs:
        version_to_loaders.setdefault(version, set()).add(loader)
        loader_to_versions.setdefault(loader, set()).add(version)
    versions = sorted(version_to_loaders)
    if fuzzy:
        # CurseForge mixes loader and Java labels into gameVersion.
        versions = [v for v in versions if v[:1].isdigit()]
    return {
        "versions": order(versions),
        "loaders": sorted(loader_to_versions),
        "version_to_loaders": {v: sorted(ls) for v, ls in sorted(version_to_loaders.items())},
        "loader_to_versions": {ld: order(sorted(vs)) for ld, vs in sorted(loader_to_versions.items())},
    }


async def get_project_options(
    source: str,
    project_id: str,
    cf_api_key: Optional[str] = None,
    http: Any = None,
) -> Dict[str, Any]:
    """Game versions and loaders a project publishes for.

    Returns:
        ``versions`` (newest first), ``loaders``, ``version_to_loaders``,
        ``loader_to_versions`` and the project ``id`` or ``slug``.
    """
    async with open_session(source, cf_api_key, use_cache=True, http=http) as session:
        if session.is_curseforge:
            pid = parse_project_id(project_id)
            pairs = []
            for idx in await session.curseforge.get_latest_indexes(pid):
                loader = cf_loader_from_code(idx.get("modLoader"))
                version = idx.get("gameVersion")
                if loader is Loader.UNKNOWN or not isinstance(version, str):
                    continue
                pairs.append((version, loader.value))
            options = _options(pairs, fuzzy=True)
            options["id"] = pid
            return options

        pairs = []
        for v in await session.modrinth.get_versions(project_id, use_cache=True):
            tags = [loader_name_to_tag(str(name)) for name in v.get("loaders") or []]
            for game_version in v.get("game_versions") or []:
                pairs.extend((str(game_version), tag) for tag in tags)
        options = _options(pairs, fuzzy=False)
        options["slug"] = project_id
        return options


async def get_batch_mod_briefs(
    source: str,
    items: Sequence[str],
    cf_api_key: Optional[str] = None,
    http: Any = None,
) -> List[Dict[str, Optional[str]]]:
    """Display name and icon URL per project, in input order.

    A project that cannot be fetched gets an ``error`` entry instead of
    failing the whole batch.
    """
    async with open_session(source, cf_api_key, http=http) as session:
        if session.is_curseforge:
            async def brief(key: str) -> Tuple[str, Optional[str]]:
                return await session.curseforge.get_mod_brief(parse_project_id(key))
        else:
            async def brief(key: str) -> Tuple[str, Optional[str]]:
                return await session.modrinth.get_project_brief(key)

        results = await gather_bounded(list(items), brief)

    briefs = []
    for key, result, error in results:
        if error is not None:
            briefs.append({"key": key, "name": None, "icon": None, "error": str(error)})
        else:
            name, icon = result
            briefs.append({"key": key, "name": name, "icon": icon, "error": None})
    return briefs


def refresh_version_cache() -> bool:
    """Re-download the Minecraft version manifest used for ordering."""
    return refresh_version_index()


def clear_all_caches() -> None:
    """Drop every cached registry response and the version index."""
    FileCache().clear()
    logger.info("Caches cleared")
