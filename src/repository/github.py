"""GitHub API client for repository release history.

Fetches every page of a repository's releases, following the ``Link``
response header until no ``rel="next"`` relation remains.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from constants import Constants
from common.errors import InvalidRepositoryReference, TransportError
from common.http_client import HttpClient

logger = logging.getLogger(__name__)


def parse_repository(repository: str) -> Tuple[str, str]:
    """Split an ``owner/name`` repository reference.

    Args:
        repository: Reference as configured, e.g. "hai-vr/upm-test-package".

    Returns:
        Tuple of (owner, repo)

    Raises:
        InvalidRepositoryReference: If the reference has any other shape.
    """
    parts = repository.split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidRepositoryReference(repository)
    return parts[0], parts[1]


def parse_next_link(link_header: Optional[str]) -> Optional[str]:
    """Extract the ``rel="next"`` URL from a Link header value.

    Args:
        link_header: e.g. '<https://api.github.com/...&page=2>; rel="next", <...>; rel="last"'

    Returns:
        Next page URL, or None when there is no next relation.
    """
    if not link_header:
        return None
    for relation in link_header.split(","):
        parts = relation.split(";")
        if len(parts) < 2:
            continue
        url = parts[0].strip().strip("<>")
        rel = parts[1].strip()
        if rel == 'rel="next"':
            return url
    return None


class GitHubReleaseClient:
    """Lightweight REST client for GitHub release history."""

    def __init__(self, http: HttpClient, base_url: Optional[str] = None):
        """Initialize GitHub client.

        Args:
            http: Shared HTTP client, already carrying the bearer token.
            base_url: Base URL for GitHub API (defaults to Constants.GITHUB_API_BASE)
        """
        self._http = http
        self.base_url = (base_url or Constants.GITHUB_API_BASE).rstrip("/")

    def releases_url(self, owner: str, repo: str) -> str:
        """First page URL of a repository's releases."""
        return f"{self.base_url}/repos/{owner}/{repo}/releases?per_page={Constants.REPO_API_PER_PAGE}"

    async def get_releases(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        """Fetch the complete release history.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            List of release dictionaries across all pages, in upstream order.

        Raises:
            TransportError: If any page request fails; partial results are discarded.
        """
        return await self._get_paginated_results(self.releases_url(owner, repo))

    async def _get_paginated_results(self, url: str) -> List[Dict[str, Any]]:
        """Fetch all pages of a paginated endpoint."""
        results: List[Dict[str, Any]] = []
        current_url: Optional[str] = url
        iteration = 0
        while current_url:
            logger.info("Getting release data at %s... (iteration #%d)", current_url, iteration)
            data, headers = await self._http.get_json(current_url, context="releases")
            if not isinstance(data, list):
                raise TransportError(current_url, None, "expected a JSON array of releases")
            results.extend(item for item in data if isinstance(item, dict))
            current_url = parse_next_link(headers.get("link"))
            iteration += 1
        return results
