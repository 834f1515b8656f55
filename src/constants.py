"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    DATA_ERROR = 3


class FetchMode(Enum):
    """How releases of a product are turned into package versions.

    Args:
        Enum (int): Numeric value as accepted in the input document.
    """

    PACKAGE_JSON_ASSET_ONLY = 1
    EXCESSIVE_WHEN_NEEDED = 2
    EXCESSIVE_ALWAYS = 3

    @property
    def allows_archive_fetch(self) -> bool:
        """Whether whole release archives may be downloaded."""
        return self is not FetchMode.PACKAGE_JSON_ASSET_ONLY


FETCH_MODE_NAMES = {
    "PackageJsonAssetOnly": FetchMode.PACKAGE_JSON_ASSET_ONLY,
    "ExcessiveWhenNeeded": FetchMode.EXCESSIVE_WHEN_NEEDED,
    "ExcessiveAlways": FetchMode.EXCESSIVE_ALWAYS,
}


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    APP_NAME = "pristine-listing"
    APP_VERSION = "1.0.0"
    USER_AGENT = f"{APP_NAME}/{APP_VERSION}"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "PRISTINE_LISTING_LOG_LEVEL"
    REQUEST_TIMEOUT = 60  # Timeout in seconds for all HTTP requests

    # Repository API constants
    GITHUB_API_BASE = "https://api.github.com"
    GITHUB_WEB_BASE = "https://github.com"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
    ENV_ACTION_GITHUB_TOKEN = "IN__GITHUB_TOKEN"
    ENV_DEV_ONLY = "IN__DEVONLY"
    REPO_API_PER_PAGE = 100  # GitHub maximum

    # Release/asset classification
    PACKAGE_JSON_FILE = "package.json"
    HIDDEN_BODY_TAG = r"$\texttt{Hidden}$"
    ZIP_CONTENT_TYPES = ("application/zip", "application/x-zip-compressed")
    JSON_CONTENT_TYPE = "application/json"
    ZIP_SUFFIX = ".zip"
    UNITYPACKAGE_SUFFIX = ".unitypackage"

    # Input/output files
    DEFAULT_INPUT_FILE = "input.json"
    DEFAULT_OUTPUT_DIR = "output"
    OUTPUT_INDEX_JSON = "index.json"
    OUTPUT_LIST_MD = "list.md"
    OUTPUT_INDEX_HTML = "index.html"

    # Input defaults
    DEFAULT_INCLUDE_PRERELEASES = True
    DEFAULT_MODE = FetchMode.PACKAGE_JSON_ASSET_ONLY
    DEFAULT_EXCESSIVE_TOLERATES_MISSING_MANIFEST = True
    DEFAULT_INCLUDE_DOWNLOAD_COUNT = False
    DEFAULT_FORCE_AUTHOR_AS_OBJECT = False
