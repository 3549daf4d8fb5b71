"""Error taxonomy for registry resolution and build-script patching.

"Nothing matched" is not an error: locators and resolvers return None for it.
The classes below cover the failures that abort an operation.
"""
from __future__ import annotations

from typing import Optional


class ModDepsError(Exception):
    """Base class for every error raised on purpose by moddeps."""


class MalformedInputError(ModDepsError):
    """Input that cannot be used: bad ids, unparsable bodies, missing keys."""


class UnknownLoaderError(MalformedInputError):
    """Loader name with no dependency-declaration dialect."""

    def __init__(self, loader: str):
        super().__init__(f"Unknown loader: {loader}")
        self.loader = loader


class UnknownRegistryError(MalformedInputError):
    """Registry (source) name that is neither CurseForge nor Modrinth."""

    def __init__(self, source: str):
        super().__init__(f"Unknown source: {source}")
        self.source = source


class TransportError(ModDepsError):
    """Network or timeout failure that survived every retry."""

    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Request to {url} failed after {attempts} attempts{detail}")
        self.url = url
        self.attempts = attempts
        self.cause = cause


class RegistryRejectionError(ModDepsError):
    """Non-success HTTP status from a registry. Never retried."""

    def __init__(self, registry: str, status: int, url: str, body: str):
        super().__init__(f"{registry} API Error: {status} url {url} body {body}")
        self.registry = registry
        self.status = status
        self.url = url
        self.body = body


class NoMatchingReleaseError(ModDepsError):
    """No release matches the requested platform version and loader."""

    def __init__(self, registry: str, mc_version: str, loader: str):
        super().__init__(
            f"No matching {registry} release found for MC {mc_version} / {loader}"
        )
        self.registry = registry
        self.mc_version = mc_version
        self.loader = loader
