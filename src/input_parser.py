"""Input document loading and default propagation.

The input describes the listing metadata, global settings, the
repositories ("products") to gather from, and external listings to merge.
Product fields that are not set inherit the global defaults.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml

from constants import Constants, FetchMode, FETCH_MODE_NAMES
from common.errors import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingData:
    """Metadata copied into the generated listing."""
    name: Optional[str] = None
    author: Optional[str] = None
    url: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    """Global settings that are not per product."""
    excessive_mode_tolerates_package_json_asset_missing: bool = Constants.DEFAULT_EXCESSIVE_TOLERATES_MISSING_MANIFEST
    include_download_count: bool = Constants.DEFAULT_INCLUDE_DOWNLOAD_COUNT
    force_output_author_as_object: bool = Constants.DEFAULT_FORCE_AUTHOR_AS_OBJECT


@dataclass(frozen=True)
class Product:
    """A repository to gather packages from, with defaults applied."""
    repository: str
    include_prereleases: bool = Constants.DEFAULT_INCLUDE_PRERELEASES
    mode: FetchMode = Constants.DEFAULT_MODE
    only_package_names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AggregateListing:
    """An external listing merged verbatim."""
    listing: str


@dataclass(frozen=True)
class ListingInput:
    """Fully resolved input of a run."""
    listing_data: ListingData
    settings: Settings = field(default_factory=Settings)
    products: Tuple[Product, ...] = ()
    aggregate_listings: Tuple[AggregateListing, ...] = ()


def parse_mode(value: Any) -> Optional[FetchMode]:
    """Interpret a mode given by name or number.

    Returns:
        FetchMode, or None when the value means "undefined".

    Raises:
        ConfigError: If the value is not a known mode.
    """
    if value is None or value == "Undefined":
        return None
    if isinstance(value, str) and value in FETCH_MODE_NAMES:
        return FETCH_MODE_NAMES[value]
    if isinstance(value, int) and not isinstance(value, bool):
        if value == 0:
            return None
        try:
            return FetchMode(value)
        except ValueError as exc:
            raise ConfigError(f"Unknown mode {value}") from exc
    raise ConfigError(f"Unknown mode {value!r}")


def _bool(section: Dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false")
    return value


def _section(document: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be an object")
    return value


def parse_input(document: Any) -> ListingInput:
    """Build a ListingInput from a decoded input document.

    Args:
        document: Mapping as read from input.json.

    Returns:
        ListingInput with defaults propagated into every product.

    Raises:
        ConfigError: If required sections are missing or malformed.
    """
    if not isinstance(document, dict):
        raise ConfigError("Input document must be an object")
    if "listingData" not in document:
        raise ConfigError("Input document has no 'listingData'")
    if not isinstance(document.get("products"), list):
        raise ConfigError("Input document has no 'products' list")

    listing = _section(document, "listingData")
    settings_section = _section(document, "settings")

    default_include_prereleases = _bool(
        settings_section, "defaultIncludePrereleases", Constants.DEFAULT_INCLUDE_PRERELEASES
    )
    default_mode = parse_mode(settings_section.get("defaultMode")) or Constants.DEFAULT_MODE
    settings = Settings(
        excessive_mode_tolerates_package_json_asset_missing=_bool(
            settings_section,
            "excessiveModeToleratesPackageJsonAssetMissing",
            Constants.DEFAULT_EXCESSIVE_TOLERATES_MISSING_MANIFEST,
        ),
        include_download_count=_bool(
            settings_section, "includeDownloadCount", Constants.DEFAULT_INCLUDE_DOWNLOAD_COUNT
        ),
        force_output_author_as_object=_bool(
            settings_section, "forceOutputAuthorAsObject", Constants.DEFAULT_FORCE_AUTHOR_AS_OBJECT
        ),
    )

    products = []
    for entry in document["products"]:
        if not isinstance(entry, dict) or not isinstance(entry.get("repository"), str):
            raise ConfigError("Each product needs a 'repository'")
        names = entry.get("onlyPackageNames") or []
        if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
            raise ConfigError("'onlyPackageNames' must be a list of strings")
        products.append(Product(
            repository=entry["repository"],
            include_prereleases=_bool(entry, "includePrereleases", default_include_prereleases),
            mode=parse_mode(entry.get("mode")) or default_mode,
            only_package_names=tuple(names),
        ))

    aggregate_listings = []
    for entry in document.get("aggregateListings") or []:
        if not isinstance(entry, dict) or not isinstance(entry.get("listing"), str):
            raise ConfigError("Each aggregate listing needs a 'listing' URL")
        aggregate_listings.append(AggregateListing(listing=entry["listing"]))

    return ListingInput(
        listing_data=ListingData(
            name=listing.get("name"),
            author=listing.get("author"),
            url=listing.get("url"),
            id=listing.get("id"),
        ),
        settings=settings,
        products=tuple(products),
        aggregate_listings=tuple(aggregate_listings),
    )


def load_input(path: str) -> ListingInput:
    """Read and parse an input file.

    Files ending in .json are read as JSON, anything else as YAML.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            if path.lower().endswith(".json"):
                document = json.load(f)
            else:
                document = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read input file {path}: {exc}") from exc
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot parse input file {path}: {exc}") from exc
    logger.info("Loaded input from %s", path)
    return parse_input(document)
