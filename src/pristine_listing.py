"""pristine-listing - Build a package listing from GitHub release histories

    Reads the input document, gathers packages from every configured
    repository, fetches external listings to merge, then writes the
    listing JSON and a Markdown summary.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import os
import sys
from typing import Optional

from constants import Constants, ExitCodes
from common.errors import ConfigError, ListingError, TransportError
from common.http_client import HttpClient
from common.logging_utils import configure_logging
from aggregate.aggregator import ListingAggregator
from args import parse_args
from gather.cancellation import CancellationToken, run_all
from gather.gatherer import Gatherer
from input_parser import ListingInput, load_input
from modify import decorate_download_counts
from output.writer import write_outputs

logger = logging.getLogger(__name__)


def resolve_token(cli_token: Optional[str]) -> str:
    """Pick the GitHub token from the CLI or the environment.

    Raises:
        ConfigError: If no non-blank token is available.
    """
    token = (
        cli_token
        or os.environ.get(Constants.ENV_ACTION_GITHUB_TOKEN)
        or os.environ.get(Constants.ENV_GITHUB_TOKEN)
    )
    if not token or not token.strip():
        raise ConfigError(f"{Constants.ENV_ACTION_GITHUB_TOKEN} env var contains nothing")
    return token.strip()


def resolve_dev_only(cli_flag: bool) -> bool:
    """Dev-only mode from the CLI flag or IN__DEVONLY=true."""
    if cli_flag:
        return True
    return os.environ.get(Constants.ENV_DEV_ONLY, "").strip().lower() == "true"


async def build_listing(listing_input: ListingInput, token: str, output_dir: str, dev_only: bool = False) -> None:
    """Gather, aggregate, decorate and write the listing.

    The gatherer and the aggregator use separate HTTP clients so the
    GitHub token is never sent to external listing hosts.
    """
    async with HttpClient(token=token) as github_http, HttpClient() as public_http:
        gatherer = Gatherer(github_http)
        aggregator = ListingAggregator(public_http)
        catalog, aggregation = await run_all(
            [
                gatherer.download_and_aggregate(listing_input),
                aggregator.download_and_aggregate(listing_input),
            ],
            CancellationToken(),
        )

    decorate_download_counts(listing_input.settings, catalog, dev_only)
    write_outputs(output_dir, listing_input.settings, catalog, aggregation)
    logger.info("Listing contains %d packages", len(catalog.packages))


def run(args) -> int:
    """Run with parsed arguments and map errors to exit codes."""
    try:
        token = resolve_token(args.GITHUB_TOKEN)
        dev_only = resolve_dev_only(args.DEV_ONLY)
        if dev_only:
            logger.info("We're in DEVELOPERONLY mode.")
        listing_input = load_input(args.INPUT_FILE)
        asyncio.run(build_listing(listing_input, token, args.OUTPUT_DIR, dev_only))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return ExitCodes.FILE_ERROR.value
    except TransportError as e:
        logger.error("Error occurred: %s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except ListingError as e:
        logger.error("Error occurred: %s", e)
        return ExitCodes.DATA_ERROR.value
    except OSError as e:
        logger.error("IO error: %s, aborting", e)
        return ExitCodes.FILE_ERROR.value
    return ExitCodes.SUCCESS.value


def main(argv=None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
