"""Release gathering package.

Turns the release histories of GitHub repositories into a catalog of
packages: releases are classified into work items, work items are fetched
into package versions, and versions are grouped and ordered per package.
"""

from .models import (
    Asset,
    AssetRole,
    Catalog,
    FetchResult,
    FetchStrategy,
    Package,
    PackageManifest,
    PackageVersion,
    Release,
    WorkItem,
)
from .cancellation import CancellationToken, run_all
from .classifier import classify
from .fetcher import ManifestFetcher
from .resolver import VersionResolver
from .gatherer import Gatherer

__all__ = [
    "Asset",
    "AssetRole",
    "Catalog",
    "FetchResult",
    "FetchStrategy",
    "Package",
    "PackageManifest",
    "PackageVersion",
    "Release",
    "WorkItem",
    "CancellationToken",
    "run_all",
    "classify",
    "ManifestFetcher",
    "VersionResolver",
    "Gatherer",
]
