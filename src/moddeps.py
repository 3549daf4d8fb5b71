"""moddeps - resolve Minecraft mod releases and patch build.gradle.

Command line entry point: parses arguments, applies configuration, runs one
operation and maps failures to exit codes.
"""

import asyncio
import json
import logging
import sys

from args import parse_args
from cli_config import apply_cli_overrides
from common.errors import (
    MalformedInputError,
    ModDepsError,
    NoMatchingReleaseError,
    RegistryRejectionError,
    TransportError,
)
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes, apply_config, load_yaml_config
import operations

logger = logging.getLogger(__name__)


def _parse_selection(text):
    """Split ``PROJECT=RELEASE`` into a pair."""
    project, sep, release = text.partition("=")
    if not sep or not project or not release:
        raise MalformedInputError(f"Invalid selection '{text}'. Expected PROJECT=RELEASE.")
    return project, release


async def run_command(args):
    """Run the selected subcommand; returns an ExitCodes member."""
    command = args.COMMAND
    key = args.CF_API_KEY

    if command == "update":
        if len(args.projects) == 1:
            message = await operations.update_dependency(
                args.GRADLE_PATH, args.projects[0], args.MC_VERSION, args.LOADER, args.SOURCE, key
            )
            print(message)
            return ExitCodes.SUCCESS
        reports = await operations.update_dependencies_batch(
            args.GRADLE_PATH, args.SOURCE, args.projects, args.MC_VERSION, args.LOADER, key
        )
        for item, report in reports.items():
            print(f"\n[{item}] {report}")
        failed = [item for item, report in reports.items() if report.startswith("❌")]
        return ExitCodes.EXIT_WARNINGS if failed else ExitCodes.SUCCESS

    if command == "apply":
        selections = [_parse_selection(s) for s in args.selections]
        if len(selections) == 1:
            project, release = selections[0]
            print(await operations.apply_selected_version(
                args.GRADLE_PATH, args.SOURCE, project, args.LOADER, release, key
            ))
            return ExitCodes.SUCCESS
        summary = await operations.apply_selected_versions_batch(
            args.GRADLE_PATH, args.SOURCE, selections, args.LOADER, key
        )
        print(summary, end="")
        return ExitCodes.EXIT_WARNINGS if "❌" in summary else ExitCodes.SUCCESS

    if command == "list":
        choices = await operations.list_versions(
            args.SOURCE, args.project, args.MC_VERSION, args.LOADER, key, use_cache=args.USE_CACHE
        )
        if not choices:
            logger.warning("No releases of %s for %s / %s", args.project, args.MC_VERSION, args.LOADER)
        for choice in choices:
            print(f"{choice.id}\t{choice.label}")
        return ExitCodes.SUCCESS

    if command == "options":
        options = await operations.get_project_options(args.SOURCE, args.project, key)
        print(json.dumps(options, indent=2))
        return ExitCodes.SUCCESS

    if command == "briefs":
        briefs = await operations.get_batch_mod_briefs(args.SOURCE, args.projects, key)
        print(json.dumps(briefs, indent=2, ensure_ascii=False))
        return ExitCodes.EXIT_WARNINGS if any(b["error"] for b in briefs) else ExitCodes.SUCCESS

    if command == "refresh-versions":
        refreshed = operations.refresh_version_cache()
        return ExitCodes.SUCCESS if refreshed else ExitCodes.CONNECTION_ERROR

    if command == "clear-cache":
        operations.clear_all_caches()
        return ExitCodes.SUCCESS

    raise MalformedInputError(f"Unknown command: {command}")


def exit_code_for(exc):
    """Exit code for an exception raised by an operation."""
    if isinstance(exc, (TransportError, RegistryRejectionError)):
        return ExitCodes.CONNECTION_ERROR
    if isinstance(exc, (NoMatchingReleaseError, MalformedInputError)):
        return ExitCodes.RESOLUTION_ERROR
    if isinstance(exc, OSError):
        return ExitCodes.FILE_ERROR
    return ExitCodes.RESOLUTION_ERROR


def setup_logging(args):
    """Console logging at --loglevel, plus a file handler for --logfile."""
    configure_logging(args.LOG_LEVEL)
    if args.LOG_FILE:
        handler = logging.FileHandler(args.LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s " + Constants.LOG_FORMAT))
        logging.getLogger().addHandler(handler)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    setup_logging(args)
    apply_config(load_yaml_config(args.CONFIG))
    apply_cli_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    try:
        code = asyncio.run(run_command(args))
    except (ModDepsError, OSError) as exc:
        logger.error("%s", exc)
        code = exit_code_for(exc)
    sys.exit(code.value)


if __name__ == "__main__":
    main()
