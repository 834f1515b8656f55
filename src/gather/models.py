"""Data models for release resolution and the resulting catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import semantic_version

from constants import Constants


class AssetRole(Enum):
    """What a release attachment is used for."""
    ARCHIVE = "archive"
    MANIFEST = "manifest"
    COMPANION = "companion"
    OTHER = "other"


class FetchStrategy(Enum):
    """How a work item is turned into a package version."""
    MANIFEST_ONLY = "manifest_only"
    FULL_ARCHIVE = "full_archive"


@dataclass(frozen=True)
class Asset:
    """A file attached to a release."""
    name: str
    content_type: str
    download_url: str
    download_count: int

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Asset":
        """Build an asset from a release API asset object."""
        return cls(
            name=data.get("name") or "",
            content_type=data.get("content_type") or "",
            download_url=data.get("browser_download_url") or "",
            download_count=int(data.get("download_count") or 0),
        )

    @property
    def role(self) -> AssetRole:
        """Classify by content type and filename."""
        lower_name = self.name.lower()
        if self.content_type in Constants.ZIP_CONTENT_TYPES and lower_name.endswith(Constants.ZIP_SUFFIX):
            return AssetRole.ARCHIVE
        if self.content_type == Constants.JSON_CONTENT_TYPE and lower_name == Constants.PACKAGE_JSON_FILE:
            return AssetRole.MANIFEST
        if lower_name.endswith(Constants.UNITYPACKAGE_SUFFIX):
            return AssetRole.COMPANION
        return AssetRole.OTHER


@dataclass(frozen=True)
class Release:
    """A published release of an upstream repository. Read-only."""
    identifier: str
    body: Optional[str]
    assets: Tuple[Asset, ...]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Release":
        """Build a release from a release API object."""
        return cls(
            identifier=str(data.get("tag_name") or data.get("name") or data.get("id") or ""),
            body=data.get("body"),
            assets=tuple(Asset.from_api(asset) for asset in data.get("assets") or []),
        )

    def assets_with_role(self, role: AssetRole) -> List[Asset]:
        """Assets of the given role, in upstream order."""
        return [asset for asset in self.assets if asset.role is role]


@dataclass(frozen=True)
class CompanionPackage:
    """A secondary downloadable artifact recorded next to the archive."""
    download_url: str
    download_count: int


@dataclass(frozen=True)
class WorkItem:
    """One unit of fetch work derived from a release."""
    fetch_url: str  # manifest asset or archive
    download_url: str  # archive URL recorded in the listing
    download_count: int  # always the archive's counter
    strategy: FetchStrategy
    companion: Optional[CompanionPackage] = None
    release: str = ""


@dataclass(frozen=True)
class AuthorName:
    """Author given as a bare string."""
    name: str


@dataclass(frozen=True)
class AuthorObject:
    """Author given as an object."""
    name: str
    email: Optional[str] = None
    url: Optional[str] = None


Author = Union[AuthorName, AuthorObject]
Yanked = Union[str, bool]


@dataclass(frozen=True)
class Sample:
    """A sample entry of a manifest."""
    display_name: Optional[str]
    description: Optional[str]
    path: Optional[str]


@dataclass(frozen=True)
class PackageManifest:
    """Decoded package descriptor. Immutable once parsed."""
    # Required
    name: str
    version: str
    # Recommended
    description: Optional[str] = None
    display_name: Optional[str] = None
    unity: Optional[str] = None
    # Optional
    author: Optional[Author] = None
    changelog_url: Optional[str] = None
    dependencies: Optional[Dict[str, str]] = None
    samples: Optional[Tuple[Sample, ...]] = None
    documentation_url: Optional[str] = None
    license: Optional[str] = None
    hide_in_editor: Optional[bool] = None
    keywords: Optional[Tuple[str, ...]] = None
    licenses_url: Optional[str] = None
    unity_release: Optional[str] = None
    # VPM / VRChat conventions
    vpm_dependencies: Optional[Dict[str, str]] = None
    vrchat_version: Optional[str] = None
    legacy_folders: Optional[Dict[str, str]] = None
    legacy_files: Optional[Dict[str, str]] = None
    legacy_packages: Optional[Tuple[str, ...]] = None
    # ALCOM convention
    yanked: Optional[Yanked] = None
    vrc_get: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class PackageVersion:
    """One resolved version of one package."""
    manifest: PackageManifest
    semver: semantic_version.Version = field(compare=False, repr=False)
    url: str
    download_count: int
    zip_sha256: Optional[str] = None
    unitypackage_url: Optional[str] = None
    unitypackage_download_count: Optional[int] = None

    @property
    def name(self) -> str:
        """Package name from the manifest."""
        return self.manifest.name

    @property
    def version(self) -> str:
        """Version string from the manifest."""
        return self.manifest.version


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one work item: a version, or a miss."""
    item: WorkItem
    version: Optional[PackageVersion] = None

    @property
    def success(self) -> bool:
        """Whether a package version was produced."""
        return self.version is not None


@dataclass
class Package:
    """Versions of one package name from one repository, most recent first."""
    name: str
    repository_url: str
    versions: List[PackageVersion] = field(default_factory=list)

    @property
    def total_download_count(self) -> int:
        """Sum of archive download counts; companion counters are excluded."""
        return sum(version.download_count for version in self.versions)

    @property
    def latest(self) -> PackageVersion:
        """First version in precedence order."""
        return self.versions[0]


@dataclass
class Catalog:
    """Listing metadata and the name-keyed packages."""
    name: Optional[str]
    author: Optional[str]
    url: Optional[str]
    id: Optional[str]
    packages: Dict[str, Package] = field(default_factory=dict)
