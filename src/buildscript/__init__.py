"""Text-level editing of Gradle build scripts."""

from .blocks import BlockRange, locate_block
from .dependencies import (
    DependencyCoordinate,
    ModuleMatcher,
    compose_dependency_line,
    curse_coordinate,
    curse_module_matcher,
    modrinth_coordinate,
    modrinth_module_matcher,
    upsert_curse_dependency,
    upsert_dependency,
    upsert_modrinth_dependency,
)
from .repositories import ensure_curse_maven_repo, ensure_modrinth_maven_repo, ensure_repo

__all__ = [
    "BlockRange",
    "DependencyCoordinate",
    "ModuleMatcher",
    "compose_dependency_line",
    "curse_coordinate",
    "curse_module_matcher",
    "ensure_curse_maven_repo",
    "ensure_modrinth_maven_repo",
    "ensure_repo",
    "locate_block",
    "modrinth_coordinate",
    "modrinth_module_matcher",
    "upsert_curse_dependency",
    "upsert_dependency",
    "upsert_modrinth_dependency",
]
