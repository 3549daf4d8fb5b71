"""Locate top-level ``name { ... }`` blocks in a Gradle build script.

Brace counting seeded by an anchored regex stands in for a grammar: the
scripts handled here are line oriented and well formed in practice. Braces
inside string literals or comments are counted like any other brace.
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional, Pattern


class BlockRange(NamedTuple):
    """Body of a block: ``text[start:end]`` sits between its braces."""

    start: int
    end: int


def block_pattern(block_name: str) -> Pattern[str]:
    """Regex matching ``<block_name> {`` at the start of a line."""
    return re.compile(rf"^\s*{re.escape(block_name)}\s*\{{", re.MULTILINE)


def _depth_before(text: str, pos: int) -> int:
    depth = 0
    for ch in text[:pos]:
        if ch == "{":
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
    return depth


def _matching_brace(text: str, pos: int) -> int:
    """Offset of the brace closing the block opened just before ``pos``.

    Falls back to ``len(text)`` when the block never closes.
    """
    depth = 1
    while pos < len(text):
        ch = text[pos]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return len(text)


def locate_block(text: str, block_name: str) -> Optional[BlockRange]:
    """Find the first top-level block called ``block_name``.

    Blocks of the same name nested inside other blocks (for example
    ``repositories`` inside ``buildscript``) are skipped.

    Args:
        text: Build script contents.
        block_name: Block identifier, e.g. ``"dependencies"``.

    Returns:
        BlockRange of the block body, or None when no top-level block exists.
    """
    for match in block_pattern(block_name).finditer(text):
        if _depth_before(text, match.start()) != 0:
            continue
        return BlockRange(match.end(), _matching_brace(text, match.end()))
    return None


def insert_into_block(text: str, block: BlockRange, snippet: str) -> str:
    """Append ``snippet`` as the last line(s) of ``block``'s body."""
    before = text[:block.start]
    inside = text[block.start:block.end]
    after = text[block.end:]
    prefix = "" if inside.endswith("\n") else "\n"
    return f"{before}{inside}{prefix}{snippet}\n{after}"
