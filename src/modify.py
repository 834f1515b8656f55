"""Decorate catalog entries with download counts before output."""

from __future__ import annotations

import dataclasses

from gather.models import Catalog, PackageVersion
from input_parser import Settings


def decorate_download_counts(settings: Settings, catalog: Catalog, dev_only: bool = False) -> None:
    """Append download counts to descriptions when the listing asks for it.

    Versions are replaced with decorated copies; manifests stay immutable.

    Args:
        settings: Global settings of the run.
        catalog: Catalog to update in place.
        dev_only: Also append counts to display names.
    """
    if not settings.include_download_count:
        return
    for package in catalog.packages.values():
        total = package.total_download_count
        package.versions = [_decorated(version, total, dev_only) for version in package.versions]


def _decorated(version: PackageVersion, total: int, dev_only: bool) -> PackageVersion:
    manifest = version.manifest
    changes = {"description": f"{manifest.description or ''} (Downloaded {version.download_count} times)"}
    if dev_only:
        changes["display_name"] = f"{manifest.display_name or ''} 🔽{version.download_count}/{total}"
    return dataclasses.replace(version, manifest=dataclasses.replace(manifest, **changes))
