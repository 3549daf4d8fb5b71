"""Argument parsing functionality for moddeps."""

import argparse
from constants import Constants


def _add_source(parser):
    parser.add_argument("-s", "--source",
                        dest="SOURCE",
                        help="Mod registry: curseforge or modrinth",
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_REGISTRIES,
                        required=True)


def _add_gradle(parser):
    parser.add_argument("-g", "--gradle",
                        dest="GRADLE_PATH",
                        help="Path to the build script (default: ./build.gradle)",
                        action="store",
                        type=str,
                        default=Constants.GRADLE_FILE)


def _add_loader(parser, required=True):
    parser.add_argument("-l", "--loader",
                        dest="LOADER",
                        help="Mod loader, i.e: forge, neoforge, fabric, quilt",
                        action="store",
                        type=str,
                        required=required)


def _add_mc_version(parser):
    parser.add_argument("-m", "--mc-version",
                        dest="MC_VERSION",
                        help="Minecraft version, i.e: 1.20.1",
                        action="store",
                        type=str,
                        required=True)


def build_parser():
    """Build the moddeps argument parser."""
    parser = argparse.ArgumentParser(
        prog="moddeps",
        description=(
            "moddeps - keep CurseForge and Modrinth mod dependencies in build.gradle current"
        ),
        add_help=True,
    )

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--cf-api-key",
                        dest="CF_API_KEY",
                        help="CurseForge API key (overrides config and CF_API_KEY)",
                        action="store",
                        type=str)
    parser.add_argument("--data-dir",
                        dest="DATA_DIR",
                        help="Directory for caches (default: per-user data dir)",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="REQUEST_TIMEOUT",
                        help="HTTP request timeout in seconds",
                        action="store",
                        type=int)
    parser.add_argument("--max-concurrency",
                        dest="MAX_CONCURRENCY",
                        help="Concurrent registry requests in batch commands",
                        action="store",
                        type=int)

    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    update = subparsers.add_parser("update", help="Update mods to their newest matching release")
    _add_source(update)
    _add_gradle(update)
    _add_mc_version(update)
    _add_loader(update)
    update.add_argument("projects",
                        metavar="PROJECT",
                        help="CurseForge project id or Modrinth slug",
                        nargs="+")

    apply_cmd = subparsers.add_parser("apply", help="Pin mods to chosen releases")
    _add_source(apply_cmd)
    _add_gradle(apply_cmd)
    _add_loader(apply_cmd)
    apply_cmd.add_argument("selections",
                           metavar="PROJECT=RELEASE",
                           help="Project and the file id (CurseForge) or version id (Modrinth) to pin",
                           nargs="+")

    list_cmd = subparsers.add_parser("list", help="List releases for a game version and loader")
    _add_source(list_cmd)
    _add_mc_version(list_cmd)
    _add_loader(list_cmd)
    list_cmd.add_argument("project", metavar="PROJECT")
    list_cmd.add_argument("--use-cache",
                          dest="USE_CACHE",
                          help="Serve listings from the on-disk cache when fresh",
                          action="store_true")

    options = subparsers.add_parser("options", help="Show game versions and loaders a project supports")
    _add_source(options)
    options.add_argument("project", metavar="PROJECT")

    briefs = subparsers.add_parser("briefs", help="Show name and icon URL of projects")
    _add_source(briefs)
    briefs.add_argument("projects", metavar="PROJECT", nargs="+")

    subparsers.add_parser("refresh-versions", help="Re-download the Minecraft version manifest")
    subparsers.add_parser("clear-cache", help="Remove all cached registry data")

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
