"""Select the releases worth fetching and split them into work items.

Some repositories publish several distinct packages in one release. Those
releases carry no package.json asset, so each of their archives becomes a
separate work item fetched in full.
"""
from __future__ import annotations

from typing import List, Optional

from constants import Constants, FetchMode
from gather.models import AssetRole, CompanionPackage, FetchStrategy, Release, WorkItem


def has_assets(release: Release) -> bool:
    """The release has at least one attachment."""
    return len(release.assets) > 0


def has_archive(release: Release) -> bool:
    """At least one attachment is a zip archive."""
    return any(asset.role is AssetRole.ARCHIVE for asset in release.assets)


def has_manifest(release: Release) -> bool:
    """At least one attachment is a bare package.json."""
    return any(asset.role is AssetRole.MANIFEST for asset in release.assets)


def is_not_hidden(release: Release) -> bool:
    """The body, if any, does not carry the hidden marker."""
    return release.body is None or Constants.HIDDEN_BODY_TAG not in release.body


def filter_releases(
    releases: List[Release],
    mode: FetchMode,
    tolerates_missing_manifest: bool,
) -> List[Release]:
    """Keep releases that can produce a package, preserving order.

    Args:
        releases: All releases of one repository.
        mode: Fetch mode of the product.
        tolerates_missing_manifest: Whether archive-capable modes accept
            releases without a package.json asset.

    Returns:
        Releases passing every predicate.
    """
    require_manifest = not mode.allows_archive_fetch or not tolerates_missing_manifest
    return [
        release
        for release in releases
        if has_assets(release)
        and has_archive(release)
        and (not require_manifest or has_manifest(release))
        and is_not_hidden(release)
    ]


def companion_of(release: Release) -> Optional[CompanionPackage]:
    """First .unitypackage attachment of the release, if any."""
    companions = release.assets_with_role(AssetRole.COMPANION)
    if not companions:
        return None
    return CompanionPackage(download_url=companions[0].download_url, download_count=companions[0].download_count)


def split_into_work(release: Release, mode: FetchMode) -> List[WorkItem]:
    """Expand one filtered release into work items.

    Args:
        release: A release that passed filter_releases.
        mode: Fetch mode of the product.

    Returns:
        Zero, one or many work items.
    """
    archives = release.assets_with_role(AssetRole.ARCHIVE)
    if not archives:
        return []

    if not mode.allows_archive_fetch:
        return _use_manifest_asset(release)

    if has_manifest(release):
        if mode is FetchMode.EXCESSIVE_WHEN_NEEDED:
            return _use_manifest_asset(release)
        # A manifest asset implies a single package; the first archive is taken.
        archive = archives[0]
        return [WorkItem(
            fetch_url=archive.download_url,
            download_url=archive.download_url,
            download_count=archive.download_count,
            strategy=FetchStrategy.FULL_ARCHIVE,
            companion=companion_of(release),
            release=release.identifier,
        )]

    return [
        WorkItem(
            fetch_url=archive.download_url,
            download_url=archive.download_url,
            download_count=archive.download_count,
            strategy=FetchStrategy.FULL_ARCHIVE,
            companion=None,
            release=release.identifier,
        )
        for archive in archives
    ]


def _use_manifest_asset(release: Release) -> List[WorkItem]:
    manifest = release.assets_with_role(AssetRole.MANIFEST)[0]
    archive = release.assets_with_role(AssetRole.ARCHIVE)[0]
    return [WorkItem(
        fetch_url=manifest.download_url,
        download_url=archive.download_url,
        download_count=archive.download_count,
        strategy=FetchStrategy.MANIFEST_ONLY,
        companion=companion_of(release),
        release=release.identifier,
    )]


def classify(
    releases: List[Release],
    mode: FetchMode,
    tolerates_missing_manifest: bool,
) -> List[WorkItem]:
    """Filter releases and expand them into work items, in release order."""
    work: List[WorkItem] = []
    for release in filter_releases(releases, mode, tolerates_missing_manifest):
        work.extend(split_into_work(release, mode))
    return work
