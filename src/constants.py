"""Constants used in the project."""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    EXIT_WARNINGS = 3
    RESOLUTION_ERROR = 4


class Registries(Enum):
    """Mod registries supported by the program.

    Args:
        Enum (string): Registry names as accepted on the command line.
    """

    CURSEFORGE = "curseforge"
    MODRINTH = "modrinth"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    APP_NAME = "ModDependencyUpdater"
    USER_AGENT = "ModDependencyUpdater/1.0 (moddeps)"

    CURSEFORGE_API_BASE = "https://api.curseforge.com/v1"
    MODRINTH_API_BASE = "https://api.modrinth.com/v2"
    MOJANG_MANIFEST_URL = "https://launchermeta.mojang.com/mc/game/version_manifest_v2.json"

    CURSE_MAVEN_URL = "https://cursemaven.com"
    CURSE_MAVEN_GROUP = "curse.maven"
    MODRINTH_MAVEN_URL = "https://api.modrinth.com/maven"
    MODRINTH_MAVEN_GROUP = "maven.modrinth"

    SUPPORTED_REGISTRIES = [
        Registries.CURSEFORGE.value,
        Registries.MODRINTH.value,
    ]
    GRADLE_FILE = "build.gradle"
    ENV_CF_API_KEY = "CF_API_KEY"
    ENV_CONFIG = "MODDEPS_CONFIG"
    ENV_LOG_LEVEL = "MODDEPS_LOG_LEVEL"
    ENV_DATA_DIR = "MODDEPS_DATA_DIR"
    LOG_FORMAT = "[%(levelname)s] %(message)s"

    REQUEST_TIMEOUT = 10  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.2
    ERROR_BODY_MAX_CHARS = 400

    CF_FILES_PAGE_SIZE = 50
    CF_FILES_MAX = 500
    REGISTRY_CACHE_TTL_SEC = 6 * 60 * 60
    MAX_CONCURRENCY = 4

    DATA_DIR: Optional[str] = None
    CF_API_KEY: Optional[str] = None


def app_data_dir() -> Path:
    """Return the per-user data directory holding caches and logs."""
    override = Constants.DATA_DIR or os.environ.get(Constants.ENV_DATA_DIR)
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / Constants.APP_NAME


def _candidate_config_paths() -> list:
    paths = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        paths.append(Path(env_path))
    paths.append(Path.cwd() / "moddeps.yml")
    paths.append(Path.cwd() / "moddeps.yaml")
    paths.append(Path.home() / ".config" / "moddeps" / "moddeps.yml")
    return paths


def load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first YAML config found.

    An explicit ``path`` wins over the default locations. Missing files and
    parse errors yield an empty dict; a broken config never stops the CLI.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [Path(path)] if path else _candidate_config_paths()
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Could not read config %s: %s", candidate, exc)
            return {}
        if isinstance(data, dict):
            logger.debug("Loaded config from %s", candidate)
            return data
        logger.warning("Ignoring config %s: top level is not a mapping", candidate)
        return {}
    return {}


# YAML key -> (Constants attribute, type)
_CONFIG_KEYS = {
    "curseforge_api_base": ("CURSEFORGE_API_BASE", str),
    "modrinth_api_base": ("MODRINTH_API_BASE", str),
    "mojang_manifest_url": ("MOJANG_MANIFEST_URL", str),
    "request_timeout": ("REQUEST_TIMEOUT", int),
    "retry_max": ("HTTP_RETRY_MAX", int),
    "retry_base_delay": ("HTTP_RETRY_BASE_DELAY_SEC", float),
    "cache_ttl": ("REGISTRY_CACHE_TTL_SEC", int),
    "max_concurrency": ("MAX_CONCURRENCY", int),
    "data_dir": ("DATA_DIR", str),
}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Copy recognised config values onto Constants.

    Values live at the top level or under an ``http``/``cache`` section.
    ``curseforge.api_key`` is kept as ``Constants.CF_API_KEY``.
    """
    flat: Dict[str, Any] = {}
    for section in ("http", "cache", "registries"):
        sub = cfg.get(section)
        if isinstance(sub, dict):
            flat.update(sub)
    flat.update({k: v for k, v in cfg.items() if not isinstance(v, dict)})

    for key, (attr, cast) in _CONFIG_KEYS.items():
        if key not in flat or flat[key] is None:
            continue
        try:
            setattr(Constants, attr, cast(flat[key]))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid config value for %s: %r", key, flat[key])

    curseforge = cfg.get("curseforge")
    if isinstance(curseforge, dict) and curseforge.get("api_key"):
        Constants.CF_API_KEY = str(curseforge["api_key"])
