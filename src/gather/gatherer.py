"""Build the catalog from every configured repository.

Repositories are resolved concurrently and each repository fans out its
work items concurrently. All tasks of a run share one CancellationToken:
the first fatal error cancels everything still running and is re-raised
unchanged, so no partial catalog is ever produced.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from constants import Constants
from common.http_client import HttpClient
from input_parser import ListingInput, Product, Settings
from gather.cancellation import CancellationToken, run_all
from gather.classifier import classify
from gather.fetcher import ManifestFetcher
from gather.models import Catalog, Package, Release
from gather.resolver import VersionResolver
from repository.github import GitHubReleaseClient, parse_repository

logger = logging.getLogger(__name__)


class Gatherer:
    """Resolves products into packages and merges them into a Catalog."""

    def __init__(
        self,
        http: HttpClient,
        releases: Optional[GitHubReleaseClient] = None,
        fetcher: Optional[ManifestFetcher] = None,
    ):
        """Initialize the gatherer.

        Args:
            http: HTTP client carrying the GitHub token. Not to be shared
                with consumers that must not send it.
            releases: Release client; built on ``http`` when omitted.
            fetcher: Manifest fetcher; built on ``http`` when omitted.
        """
        self._releases = releases or GitHubReleaseClient(http)
        self._fetcher = fetcher or ManifestFetcher(http)

    async def download_and_aggregate(self, listing_input: ListingInput) -> Catalog:
        """Resolve every product and fold the packages into one catalog.

        Raises:
            ListingError: The first fatal error of any repository.
        """
        catalog = Catalog(
            name=listing_input.listing_data.name,
            author=listing_input.listing_data.author,
            url=listing_input.listing_data.url,
            id=listing_input.listing_data.id,
        )
        token = CancellationToken()
        per_product = await run_all(
            (self.resolve_product(product, listing_input.settings, token) for product in listing_input.products),
            token,
        )
        catalog.packages = merge_packages(per_product)
        return catalog

    async def resolve_product(self, product: Product, settings: Settings, token: CancellationToken) -> List[Package]:
        """Resolve the packages of one repository.

        Args:
            product: Repository and its per-product overrides.
            settings: Global settings of the run.
            token: Shared cancellation token.

        Returns:
            Packages of the repository, each with at least one version.
        """
        token.raise_if_cancelled()
        try:
            owner, repo = parse_repository(product.repository)
            releases = [Release.from_api(data) for data in await self._releases.get_releases(owner, repo)]
            token.raise_if_cancelled()

            work = classify(releases, product.mode, settings.excessive_mode_tolerates_package_json_asset_missing)
            logger.info("%s: %d releases, %d items to fetch", product.repository, len(releases), len(work))

            results = await run_all((self._fetcher.fetch(item, token) for item in work), token)

            resolver = VersionResolver(
                repository_url=f"{Constants.GITHUB_WEB_BASE}/{product.repository}",
                include_prereleases=product.include_prereleases,
                only_package_names=product.only_package_names,
            )
            packages = resolver.resolve(results)
        except Exception as exc:
            token.cancel(exc)
            raise
        logger.info("%s: resolved %d packages", product.repository, len(packages))
        return packages


def merge_packages(per_product: List[List[Package]]) -> Dict[str, Package]:
    """Fold per-repository packages into one name-keyed map.

    A name produced by several repositories keeps the package merged last;
    multi-repository packages are not supported.
    """
    merged: Dict[str, Package] = {}
    for packages in per_product:
        for package in packages:
            if not package.versions:
                continue
            previous = merged.get(package.name)
            if previous is not None and previous.repository_url != package.repository_url:
                logger.warning(
                    "Package %s from %s replaces the one from %s",
                    package.name, package.repository_url, previous.repository_url,
                )
            merged[package.name] = package
    return merged
