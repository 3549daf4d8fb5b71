"""CurseForge registry package.

- client.py: HTTP interactions with the CurseForge v1 API
"""

from .client import REGISTRY_NAME, CurseForgeClient, files_cache_key, parse_project_id

__all__ = [
    "REGISTRY_NAME",
    "CurseForgeClient",
    "files_cache_key",
    "parse_project_id",
]
