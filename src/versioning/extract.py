"""Pull a human-readable version out of release file names."""

import re
from typing import Optional

# Dotted digits, optionally followed by a pre-release tag (-beta.2, -rc1) or
# build metadata (+mc1.20). Loader names after a dash (-forge) are not part
# of the version.
_VERSION_TOKEN_RE = re.compile(
    r"\d+(?:\.\d+)*(?:-(?:alpha|beta|pre|rc|snapshot)[a-zA-Z0-9_.]*|\+[a-zA-Z0-9_.]+)?",
    re.IGNORECASE,
)


def strip_jar_suffix(name: str) -> str:
    """Drop a trailing ``.jar`` (any case)."""
    if name.lower().endswith(".jar"):
        return name[:-4]
    return name


def extract_version(text: str) -> Optional[str]:
    """Return the first dotted numeric token in ``text``.

    Tokens without a dot (``42`` in ``build42``) are build numbers, not
    versions, and are skipped.

    >>> extract_version("MyMod-3.2.1-forge-1.20.jar")
    '3.2.1'
    >>> extract_version("MyMod-build42.jar") is None
    True
    """
    for match in _VERSION_TOKEN_RE.finditer(strip_jar_suffix(text)):
        token = match.group(0)
        if "." in token:
            return token
    return None
