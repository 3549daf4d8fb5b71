"""Make sure a build script declares the Maven repository a dependency needs."""

from __future__ import annotations

import logging
from typing import Tuple, Union

from constants import Constants
from .blocks import insert_into_block, locate_block

logger = logging.getLogger(__name__)

CURSE_MAVEN_STANZA = f"""    maven {{
        name = "Curse Maven"
        url = "{Constants.CURSE_MAVEN_URL}"
        content {{
            includeGroup "{Constants.CURSE_MAVEN_GROUP}"
        }}
    }}"""

MODRINTH_MAVEN_STANZA = f"""    maven {{
        name = "Modrinth"
        url = "{Constants.MODRINTH_MAVEN_URL}"
    }}"""

# Any of these substrings means the repository is already declared.
CURSE_MAVEN_MARKERS = (Constants.CURSE_MAVEN_URL, Constants.CURSE_MAVEN_GROUP)
MODRINTH_MAVEN_MARKERS = (Constants.MODRINTH_MAVEN_URL,)


def ensure_repo(
    text: str,
    repo_marker: Union[str, Tuple[str, ...]],
    repo_stanza: str,
) -> str:
    """Return ``text`` with ``repo_stanza`` declared in ``repositories``.

    Idempotent: when any marker already occurs in the script nothing changes.
    Otherwise the stanza goes, in order of preference, at the end of the
    top-level ``repositories`` block, into a new block right after a leading
    ``plugins`` block, or into a new block at the top of the file.
    """
    markers = (repo_marker,) if isinstance(repo_marker, str) else repo_marker
    if any(marker in text for marker in markers):
        return text

    block = locate_block(text, "repositories")
    if block is not None:
        logger.debug("Appending repository to existing repositories block")
        return insert_into_block(text, block, repo_stanza)

    new_block = f"repositories {{\n{repo_stanza}\n}}"
    if text.lstrip().startswith("plugins {"):
        # First '}' in the file, not the brace that balances plugins {.
        plugins_end = text.find("}") + 1
        logger.debug("Creating repositories block after plugins block")
        return f"{text[:plugins_end]}\n\n{new_block}\n\n{text[plugins_end:]}"

    logger.debug("Creating repositories block at top of file")
    return f"{new_block}\n\n{text}"


def ensure_curse_maven_repo(text: str) -> str:
    """Declare the Curse Maven repository (cursemaven.com)."""
    return ensure_repo(text, CURSE_MAVEN_MARKERS, CURSE_MAVEN_STANZA)


def ensure_modrinth_maven_repo(text: str) -> str:
    """Declare the Modrinth Maven repository."""
    return ensure_repo(text, MODRINTH_MAVEN_MARKERS, MODRINTH_MAVEN_STANZA)
