"""Resolve work items into package versions.

Two strategies are supported:

- manifest-only: download the bare package.json asset. Cheap, but no
  archive hash can be computed.
- full-archive: download the whole zip to hash it and read the manifest
  at its root. An archive without a manifest is a miss, not an error,
  because bulk releases may attach archives that are not packages.
"""
from __future__ import annotations

import hashlib
import logging
from typing import Optional

from constants import Constants
from common.errors import MalformedManifest, MissingManifestInArchive
from common.http_client import HttpClient
from common.logging_utils import safe_url
from gather.archive import ArchiveReader, ZipArchiveReader
from gather.cancellation import CancellationToken
from gather.manifest import parse_manifest
from gather.models import FetchResult, FetchStrategy, PackageVersion, WorkItem
from versioning.semver import parse_semver

logger = logging.getLogger(__name__)


class ManifestFetcher:
    """Downloads manifests or archives and builds PackageVersion values."""

    def __init__(self, http: HttpClient, archive_reader: Optional[ArchiveReader] = None):
        self._http = http
        self._archive_reader = archive_reader or ZipArchiveReader()

    async def fetch(self, item: WorkItem, token: CancellationToken) -> FetchResult:
        """Resolve one work item.

        Args:
            item: Work item produced by the classifier.
            token: Shared cancellation token of the run.

        Returns:
            FetchResult holding a version, or a miss.

        Raises:
            TransportError: On any non-success response.
            MalformedManifest: If the manifest is structurally invalid.
        """
        token.raise_if_cancelled()
        if item.strategy is FetchStrategy.FULL_ARCHIVE:
            result = await self._fetch_archive(item)
        else:
            result = await self._fetch_manifest(item)
        token.raise_if_cancelled()
        return result

    async def _fetch_manifest(self, item: WorkItem) -> FetchResult:
        logger.info("Downloading package.json %s...", safe_url(item.fetch_url))
        try:
            text = await self._http.get_text(item.fetch_url, context="manifest")
        except UnicodeDecodeError as exc:
            raise MalformedManifest(item.fetch_url, f"{Constants.PACKAGE_JSON_FILE} is not UTF-8: {exc}") from exc
        return FetchResult(item=item, version=self.to_package_version(item, text, zip_sha256=None))

    async def _fetch_archive(self, item: WorkItem) -> FetchResult:
        logger.info("Downloading zip %s...", safe_url(item.fetch_url))
        data = await self._http.get_bytes(item.fetch_url, context="archive")
        zip_sha256 = hashlib.sha256(data).hexdigest()
        try:
            text = self._archive_reader.read_root_entry(data, Constants.PACKAGE_JSON_FILE, item.fetch_url)
        except MissingManifestInArchive:
            logger.info("Zip file at %s didn't have a %s at the root of it.",
                        safe_url(item.fetch_url), Constants.PACKAGE_JSON_FILE)
            return FetchResult(item=item, version=None)
        return FetchResult(item=item, version=self.to_package_version(item, text, zip_sha256=zip_sha256))

    @staticmethod
    def to_package_version(item: WorkItem, text: str, zip_sha256: Optional[str]) -> PackageVersion:
        """Build the PackageVersion of a work item from manifest text."""
        manifest = parse_manifest(text, item.fetch_url)
        try:
            semver = parse_semver(manifest.version)
        except ValueError as exc:
            raise MalformedManifest(item.fetch_url, f"version '{manifest.version}' is not a semantic version") from exc
        companion = item.companion
        return PackageVersion(
            manifest=manifest,
            semver=semver,
            url=item.download_url,
            download_count=item.download_count,
            zip_sha256=zip_sha256,
            unitypackage_url=companion.download_url if companion else None,
            unitypackage_download_count=companion.download_count if companion else None,
        )
