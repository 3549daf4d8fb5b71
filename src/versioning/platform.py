"""Order Minecraft versions by their position in the Mojang version manifest.

The manifest is fetched explicitly (``refresh_version_index``) and persisted;
readers use whatever index is on disk, however old. Without an index the
orderers only de-duplicate.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from constants import Constants
from common.errors import MalformedInputError, ModDepsError
from common.http_client import get_json
from versioning.cache import cache_dir

logger = logging.getLogger(__name__)

VersionIndex = Dict[str, int]

UNKNOWN_RANK = 2 ** 31 - 1
INDEX_FILE_NAME = "mc_versions.json"

_BASE_RE = re.compile(r"^\d+(?:\.\d+)+")
_RC_RE = re.compile(r"-rc(\d*)")
_PRE_RE = re.compile(r"-pre(\d*)")

# Secondary ordering inside one base version.
_KIND_RC = 0
_KIND_PRE = 1
_KIND_SNAPSHOT = 2
_KIND_PLAIN = 3


def version_index_path() -> Path:
    return cache_dir() / INDEX_FILE_NAME


def build_version_index(manifest: Any) -> VersionIndex:
    """Rank every manifest version by its position in the manifest list.

    Raises:
        MalformedInputError: the manifest has no ``versions`` list of ids.
    """
    versions = manifest.get("versions") if isinstance(manifest, dict) else None
    if not isinstance(versions, list):
        raise MalformedInputError("Mojang manifest has no 'versions' list")
    index: VersionIndex = {}
    for position, entry in enumerate(versions):
        version_id = entry.get("id") if isinstance(entry, dict) else None
        if not isinstance(version_id, str):
            raise MalformedInputError(f"Mojang manifest entry {position} has no id")
        index.setdefault(version_id, position)
    return index


def save_version_index(index: Mapping[str, int], path: Optional[Path] = None) -> None:
    target = path or version_index_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as fh:
        json.dump(dict(index), fh)


def load_version_index(path: Optional[Path] = None) -> Optional[VersionIndex]:
    """Persisted index, or None when it is missing or unreadable."""
    source = path or version_index_path()
    try:
        with open(source, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable version index %s: %s", source, exc)
        return None
    if not isinstance(data, dict):
        return None
    return {str(k): int(v) for k, v in data.items() if isinstance(v, int)}


def refresh_version_index(path: Optional[Path] = None) -> bool:
    """Fetch the Mojang manifest and replace the persisted index.

    Failures are logged and leave the previous index untouched.

    Returns:
        True when a fresh index was written.
    """
    try:
        manifest = get_json(Constants.MOJANG_MANIFEST_URL, registry="Mojang")
        index = build_version_index(manifest)
        save_version_index(index, path)
    except (ModDepsError, OSError) as exc:
        logger.warning("Could not refresh Minecraft version index: %s", exc)
        return False
    logger.info("Minecraft version index refreshed (%d versions)", len(index))
    return True


def _dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _resolve_index(index: Optional[Mapping[str, int]]) -> Optional[Mapping[str, int]]:
    return index if index is not None else load_version_index()


def order_versions(versions: Iterable[str], index: Optional[Mapping[str, int]] = None) -> List[str]:
    """Sort ``versions`` by manifest rank, unknown ones last, duplicates dropped.

    Ties keep input order. ``index`` defaults to the persisted index.
    """
    versions = list(versions)
    ranks = _resolve_index(index)
    if ranks is None:
        return _dedupe(versions)
    ordered = sorted(versions, key=lambda v: ranks.get(v, UNKNOWN_RANK))
    return _dedupe(ordered)


def _suffix_key(version: str) -> Tuple[int, Tuple[int, int]]:
    """(kind, number key): rc < pre < snapshot < plain; higher N first."""
    for kind, pattern in ((_KIND_RC, _RC_RE), (_KIND_PRE, _PRE_RE)):
        match = pattern.search(version)
        if match:
            digits = match.group(1)
            return kind, ((0, -int(digits)) if digits else (1, 0))
    if "snapshot" in version:
        return _KIND_SNAPSHOT, (1, 0)
    return _KIND_PLAIN, (1, 0)


def _fuzzy_key(version: str, ranks: Mapping[str, int]) -> Tuple[int, int, Tuple[int, int]]:
    lowered = version.lower()
    rank = ranks.get(version, UNKNOWN_RANK)
    if rank == UNKNOWN_RANK:
        base = _BASE_RE.match(lowered)
        if base:
            rank = ranks.get(base.group(0), UNKNOWN_RANK)
    if rank == UNKNOWN_RANK:
        return rank, 0, (0, 0)
    kind, number = _suffix_key(lowered)
    return rank, kind, number


def order_versions_fuzzy(versions: Iterable[str], index: Optional[Mapping[str, int]] = None) -> List[str]:
    """Like ``order_versions`` but tolerant of CurseForge-style version labels.

    A version missing from the index is ranked by its leading dotted-numeric
    part (``1.20-rc1`` ranks as ``1.20``). Inside one rank, release candidates
    come first, then pre-releases, snapshots and finally plain releases, with
    ``rc2`` before ``rc1``.
    """
    versions = list(versions)
    ranks = _resolve_index(index)
    if ranks is None:
        return _dedupe(versions)
    ordered = sorted(versions, key=lambda v: _fuzzy_key(v, ranks))
    return _dedupe(ordered)
