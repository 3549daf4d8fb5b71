"""Modrinth registry package.

- client.py: HTTP interactions with the Modrinth v2 API
"""

from .client import REGISTRY_NAME, ModrinthClient, versions_cache_key

__all__ = [
    "REGISTRY_NAME",
    "ModrinthClient",
    "versions_cache_key",
]
