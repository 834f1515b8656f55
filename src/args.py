"""Argument parsing functionality for pristine-listing."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="pristine-listing",
        description=(
            "Build a package listing from the releases of GitHub repositories"
        ),
        add_help=True,
    )

    parser.add_argument("-i", "--input",
                        dest="INPUT_FILE",
                        help="Input document (JSON, or YAML for other extensions)",
                        action="store", type=str,
                        default=Constants.DEFAULT_INPUT_FILE)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT_DIR",
                        help="Directory receiving index.json, list.md and index.html",
                        action="store", type=str,
                        default=Constants.DEFAULT_OUTPUT_DIR)
    parser.add_argument("--token",
                        dest="GITHUB_TOKEN",
                        help=(
                            f"GitHub token; defaults to ${Constants.ENV_ACTION_GITHUB_TOKEN} "
                            f"then ${Constants.ENV_GITHUB_TOKEN}"
                        ),
                        action="store", type=str)
    parser.add_argument("--dev-only",
                        dest="DEV_ONLY",
                        help="Also show download counts in display names.",
                        action="store_true")
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

    return parser.parse_args(argv)
