"""Group fetched versions into packages and order them by precedence."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from gather.models import FetchResult, Package
from versioning.semver import is_prerelease, sort_by_precedence

logger = logging.getLogger(__name__)


class VersionResolver:
    """Turns one repository's fetch results into its packages.

    Args:
        repository_url: Canonical web URL of the repository.
        include_prereleases: Whether hyphenated versions are kept.
        only_package_names: Allow-list of package names; empty allows all.
    """

    def __init__(self, repository_url: str, include_prereleases: bool, only_package_names: Sequence[str] = ()):
        self.repository_url = repository_url
        self.include_prereleases = include_prereleases
        self.only_package_names = set(only_package_names)

    def accepts(self, name: str, version: str) -> bool:
        """Whether a version passes the name allow-list and prerelease filter."""
        if self.only_package_names and name not in self.only_package_names:
            return False
        if not self.include_prereleases and is_prerelease(version):
            return False
        return True

    def resolve(self, results: Sequence[FetchResult]) -> List[Package]:
        """Build packages from fetch results.

        Misses are discarded. When two results carry the same name and
        version, the earlier one (newer release upstream) is kept.

        Args:
            results: Fetch results in release order.

        Returns:
            Packages with at least one version, versions most recent first.
        """
        packages: Dict[str, Package] = {}
        seen: Dict[str, set] = {}
        for result in results:
            version = result.version
            if version is None:
                continue
            if not self.accepts(version.name, version.version):
                continue
            known = seen.setdefault(version.name, set())
            if version.version in known:
                logger.warning(
                    "Duplicate version %s of %s in release %s ignored",
                    version.version, version.name, result.item.release,
                )
                continue
            known.add(version.version)
            package = packages.get(version.name)
            if package is None:
                package = Package(name=version.name, repository_url=self.repository_url)
                packages[version.name] = package
            package.versions.append(version)

        for package in packages.values():
            package.versions = sort_by_precedence(package.versions, key=lambda v: v.semver)
        return [package for package in packages.values() if package.versions]
