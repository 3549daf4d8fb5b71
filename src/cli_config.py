"""CLI configuration overrides for runtime tunables and the CurseForge key.

Kept out of moddeps.py so the entrypoint stays slim. CLI values take
precedence over the YAML config and the environment.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from constants import Constants
from common.errors import MalformedInputError

logger = logging.getLogger(__name__)


def apply_cli_overrides(args) -> None:
    """Copy tunables given on the command line onto Constants.

    Only options the user actually passed are applied; argparse defaults of
    None leave the config values in place.
    """
    if getattr(args, "DATA_DIR", None):
        Constants.DATA_DIR = args.DATA_DIR
    if getattr(args, "REQUEST_TIMEOUT", None) is not None:
        Constants.REQUEST_TIMEOUT = int(args.REQUEST_TIMEOUT)
    if getattr(args, "MAX_CONCURRENCY", None) is not None:
        Constants.MAX_CONCURRENCY = max(1, int(args.MAX_CONCURRENCY))
    if getattr(args, "CF_API_KEY", None):
        Constants.CF_API_KEY = args.CF_API_KEY
    logger.debug(
        "Runtime settings: timeout=%s concurrency=%s data_dir=%s",
        Constants.REQUEST_TIMEOUT, Constants.MAX_CONCURRENCY, Constants.DATA_DIR,
    )


def resolve_cf_api_key(cli_key: Optional[str] = None) -> str:
    """Pick the CurseForge API key.

    Priority:
    1. ``cli_key`` (explicit argument)
    2. ``curseforge.api_key`` from the YAML config / ``--cf-api-key``
    3. Environment variable CF_API_KEY

    Raises:
        MalformedInputError: no non-empty key is available.
    """
    candidates = (
        cli_key,
        Constants.CF_API_KEY,
        os.environ.get(Constants.ENV_CF_API_KEY),
    )
    for candidate in candidates:
        if candidate and str(candidate).strip():
            return str(candidate).strip()
    raise MalformedInputError(
        "CurseForge API key missing. Pass --cf-api-key, set curseforge.api_key "
        f"in the config or export {Constants.ENV_CF_API_KEY}."
    )
