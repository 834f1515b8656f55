"""Semantic-version parsing and precedence ordering."""

from typing import Callable, Iterable, List, TypeVar

import semantic_version

T = TypeVar("T")


def parse_semver(raw: str) -> semantic_version.Version:
    """Parse a version string, accepting loose forms such as ``1.2`` or ``v1.2.3``.

    Args:
        raw: Version string as published.

    Returns:
        semantic_version.Version usable for precedence comparisons.

    Raises:
        ValueError: If the string cannot be interpreted as a version at all.
    """
    candidate = raw.strip()
    try:
        return semantic_version.Version(candidate)
    except ValueError:
        pass
    if candidate[:1] in ("v", "V"):
        candidate = candidate[1:]
    return semantic_version.Version.coerce(candidate)


def is_prerelease(raw: str) -> bool:
    """A version is a prerelease when its string contains a hyphen."""
    return "-" in raw


def sort_by_precedence(items: Iterable[T], key: Callable[[T], semantic_version.Version]) -> List[T]:
    """Order items by semantic-version precedence, most recent first."""
    return sorted(items, key=key, reverse=True)
