"""Compose and upsert dependency declarations in a Gradle build script."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Pattern, Union

from constants import Constants
from common.errors import UnknownLoaderError
from .blocks import insert_into_block, locate_block

logger = logging.getLogger(__name__)

_CF = re.escape(Constants.CURSE_MAVEN_GROUP)
_MR = re.escape(Constants.MODRINTH_MAVEN_GROUP)
_MR_VERSION = r"[A-Za-z0-9.-]+"

# Loader -> declaration template. Keys are lower-case loader names.
_DIALECTS = {
    "forge": '    implementation fg.deobf("{coordinate}")',
    "fabric": '    modImplementation "{coordinate}"',
    "quilt": '    modImplementation "{coordinate}"',
    "neoforge": '    implementation "{coordinate}"',
}


@dataclass(frozen=True)
class DependencyCoordinate:
    """``group:artifact:version`` as understood by a registry's Maven bridge."""

    group: str
    artifact: str
    version: Union[str, int]

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


def curse_coordinate(slug: str, project_id: Union[str, int], file_id: Union[str, int]) -> DependencyCoordinate:
    """``curse.maven:<slug>-<projectId>:<fileId>``"""
    return DependencyCoordinate(Constants.CURSE_MAVEN_GROUP, f"{slug}-{project_id}", file_id)


def modrinth_coordinate(slug: str, version_id: str) -> DependencyCoordinate:
    """``maven.modrinth:<slug>:<versionId>``"""
    return DependencyCoordinate(Constants.MODRINTH_MAVEN_GROUP, slug, version_id)


def compose_dependency_line(loader: str, coordinate: Union[DependencyCoordinate, str]) -> str:
    """Render the declaration line for ``coordinate`` in ``loader``'s dialect.

    Raises:
        UnknownLoaderError: the loader has no declaration dialect.
    """
    template = _DIALECTS.get(loader.lower())
    if template is None:
        raise UnknownLoaderError(loader)
    return template.format(coordinate=coordinate)


@dataclass(frozen=True)
class ModuleMatcher:
    """How to recognise and update an existing declaration of one module.

    Attributes:
        line: Matches a whole line that references the module.
        fragment: Applied to that line; group 1 is kept, the rest of the
            match is replaced by the new id.
        new_id: Applied to the new declaration line; group 1 is the id.
    """

    line: Pattern[str]
    fragment: Pattern[str]
    new_id: Pattern[str]


def curse_module_matcher(project_id: Union[str, int]) -> ModuleMatcher:
    """Match Curse Maven declarations of ``project_id`` whatever the slug."""
    pid = re.escape(str(project_id))
    return ModuleMatcher(
        line=re.compile(rf"^.*{_CF}:[^:\s\"']*-{pid}:\d+.*$", re.MULTILINE),
        fragment=re.compile(rf"({_CF}:[^:\s\"']*-{pid}:)\d+"),
        new_id=re.compile(rf"{_CF}:[^:\s\"']+-\d+:(\d+)"),
    )


def modrinth_module_matcher(slug: str) -> ModuleMatcher:
    """Match Modrinth Maven declarations of project ``slug``."""
    s = re.escape(slug)
    return ModuleMatcher(
        line=re.compile(rf"^.*{_MR}:{s}:{_MR_VERSION}.*$", re.MULTILINE),
        fragment=re.compile(rf"({_MR}:{s}:){_MR_VERSION}"),
        new_id=re.compile(rf"{_MR}:[^:\s\"']+:({_MR_VERSION})"),
    )


def insert_into_dependencies_block(text: str, dep_line: str) -> str:
    """Append ``dep_line`` to the top-level dependencies block, creating it if needed."""
    block = locate_block(text, "dependencies")
    if block is not None:
        return insert_into_block(text, block, dep_line)
    logger.debug("No dependencies block; appending one at end of file")
    return f"{text}\ndependencies {{\n{dep_line}\n}}\n"


def upsert_dependency(text: str, matcher: ModuleMatcher, new_line: str) -> str:
    """Update the module's existing declaration in place, or insert ``new_line``.

    Only the version/file-id fragment of an existing line is rewritten so the
    line keeps its indentation, configuration and trailing comment. When the
    new id cannot be read from ``new_line`` the whole line is replaced.
    """
    match = matcher.line.search(text)
    if match is None:
        return insert_into_dependencies_block(text, new_line)

    before, line, after = text[:match.start()], match.group(0), text[match.end():]
    new_id = matcher.new_id.search(new_line)
    if new_id is None:
        logger.debug("Could not extract new id from %r; replacing whole line", new_line)
        return f"{before}{new_line}{after}"

    replacement = new_id.group(1)
    replaced = matcher.fragment.sub(lambda m: m.group(1) + replacement, line, count=1)
    return f"{before}{replaced}{after}"


def upsert_curse_dependency(text: str, project_id: Union[str, int], dep_line: str) -> str:
    """Upsert a Curse Maven declaration for ``project_id``."""
    return upsert_dependency(text, curse_module_matcher(project_id), dep_line)


def upsert_modrinth_dependency(text: str, slug: str, dep_line: str) -> str:
    """Upsert a Modrinth Maven declaration for ``slug``."""
    return upsert_dependency(text, modrinth_module_matcher(slug), dep_line)
