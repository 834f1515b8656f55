"""Fetch pre-built external listings to merge into the output verbatim."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from common.errors import MalformedManifest
from common.http_client import HttpClient
from gather.cancellation import CancellationToken, run_all
from input_parser import AggregateListing, ListingInput

logger = logging.getLogger(__name__)


@dataclass
class AggregatedVersion:
    """A version object of an external listing, kept as published."""
    data: Dict[str, Any]


@dataclass
class AggregatedPackage:
    """Versions of one external package, in published order."""
    versions: Dict[str, AggregatedVersion] = field(default_factory=dict)


@dataclass
class AggregatedListing:
    """One external listing."""
    listing_url: str
    name: Optional[str] = None
    author: Optional[str] = None
    url: Optional[str] = None
    id: Optional[str] = None
    packages: Dict[str, AggregatedPackage] = field(default_factory=dict)


@dataclass
class Aggregation:
    """Every external listing of a run, in input order."""
    aggregated: List[AggregatedListing] = field(default_factory=list)


class ListingAggregator:
    """Downloads external listings.

    The HTTP client given here must not carry the GitHub token: external
    listings may be hosted anywhere.
    """

    def __init__(self, http: HttpClient):
        self._http = http

    async def download_and_aggregate(self, listing_input: ListingInput) -> Aggregation:
        """Fetch every configured external listing concurrently.

        Raises:
            TransportError: If any listing cannot be downloaded.
            MalformedManifest: If a listing is not shaped like a listing.
        """
        results = await run_all(
            (self.resolve(entry) for entry in listing_input.aggregate_listings),
            CancellationToken(),
        )
        return Aggregation(aggregated=list(results))

    async def resolve(self, entry: AggregateListing) -> AggregatedListing:
        """Fetch and decode one external listing."""
        logger.info("Getting listing at %s...", entry.listing)
        document, _ = await self._http.get_json(entry.listing, context="listing")
        return parse_listing(document, entry.listing)


def parse_listing(document: Any, listing_url: str) -> AggregatedListing:
    """Decode a listing document, keeping version objects untouched."""
    if not isinstance(document, dict) or not isinstance(document.get("packages"), dict):
        raise MalformedManifest(listing_url, "listing has no 'packages' object")

    packages: Dict[str, AggregatedPackage] = {}
    for package_name, package_data in document["packages"].items():
        versions_data = package_data.get("versions") if isinstance(package_data, dict) else None
        if not isinstance(versions_data, dict):
            raise MalformedManifest(listing_url, f"package {package_name} has no 'versions' object")
        versions: Dict[str, AggregatedVersion] = {}
        for version_number, version_data in versions_data.items():
            if not isinstance(version_data, dict):
                raise MalformedManifest(listing_url, f"version {version_number} of {package_name} is not an object")
            versions[version_number] = AggregatedVersion(data=version_data)
        packages[package_name] = AggregatedPackage(versions=versions)

    return AggregatedListing(
        listing_url=listing_url,
        name=document.get("name"),
        author=document.get("author"),
        url=document.get("url"),
        id=document.get("id"),
        packages=packages,
    )
