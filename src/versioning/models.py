"""Data models for mod releases and their resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Union


class Loader(Enum):
    """Mod loaders known to the registries."""
    FORGE = "Forge"
    NEOFORGE = "NeoForge"
    FABRIC = "Fabric"
    QUILT = "Quilt"
    LITELOADER = "LiteLoader"
    RIFT = "Rift"
    UNKNOWN = "Unknown"


class ReleaseTier(Enum):
    """Release fidelity. Declaration order is selection priority."""
    RELEASE = "release"
    BETA = "beta"
    ALPHA = "alpha"
    UNKNOWN = "unknown"


# Release > Beta > Alpha; Unknown is never selected.
TIER_PRIORITY = (ReleaseTier.RELEASE, ReleaseTier.BETA, ReleaseTier.ALPHA)

# CurseForge modLoader codes.
_CF_LOADER_CODES = {
    1: Loader.FORGE,
    3: Loader.LITELOADER,
    4: Loader.FABRIC,
    5: Loader.QUILT,
    6: Loader.NEOFORGE,
    7: Loader.RIFT,
}

# CurseForge releaseType codes.
_CF_RELEASE_CODES = {
    1: ReleaseTier.RELEASE,
    2: ReleaseTier.BETA,
    3: ReleaseTier.ALPHA,
}

_KNOWN_LOADER_NAMES = {
    "forge": Loader.FORGE,
    "neoforge": Loader.NEOFORGE,
    "fabric": Loader.FABRIC,
    "quilt": Loader.QUILT,
}


def loader_name_to_tag(name: str) -> str:
    """Canonical loader label for ``name``.

    Known names map to their tag whatever the case (``"liteloader"`` ->
    ``"LiteLoader"``); anything else is lower-cased and capitalised
    (``"PAPER"`` -> ``"Paper"``).
    """
    lowered = name.lower()
    for loader in Loader:
        if loader is not Loader.UNKNOWN and loader.value.lower() == lowered:
            return loader.value
    return lowered[:1].upper() + lowered[1:]


def cf_loader_from_code(code: Optional[int]) -> Loader:
    """Translate a CurseForge ``modLoader`` code."""
    if code is None:
        return Loader.UNKNOWN
    return _CF_LOADER_CODES.get(code, Loader.UNKNOWN)


def cf_loader_code_from_name(name: str) -> Optional[int]:
    """CurseForge ``modLoaderType`` for the loaders the files endpoint filters on."""
    loader = _KNOWN_LOADER_NAMES.get(name.lower())
    if loader is None:
        return None
    for code, known in _CF_LOADER_CODES.items():
        if known is loader:
            return code
    return None


def cf_release_tier(code: Optional[int]) -> ReleaseTier:
    """Translate a CurseForge ``releaseType`` code."""
    if code is None:
        return ReleaseTier.UNKNOWN
    return _CF_RELEASE_CODES.get(code, ReleaseTier.UNKNOWN)


def mr_release_tier(version_type: Optional[str]) -> ReleaseTier:
    """Translate a Modrinth ``version_type`` string."""
    try:
        return ReleaseTier((version_type or "").lower())
    except ValueError:
        return ReleaseTier.UNKNOWN


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a registry ISO-8601 timestamp; None when absent or unparsable."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class ReleaseCandidate:
    """One downloadable release as reported by a registry."""
    id: Union[int, str]
    display_name: str
    file_name: str
    release_tier: ReleaseTier
    platform_versions: FrozenSet[str] = field(default_factory=frozenset)
    loaders: FrozenSet[str] = field(default_factory=frozenset)
    published_at: Optional[datetime] = None


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving the best release for a platform version and loader."""
    id: Union[int, str]
    display_version: str
    release_tier: ReleaseTier


@dataclass
class VersionChoice:
    """One row of a version listing."""
    id: str
    label: str
    kind: str

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "kind": self.kind}
