"""Decode package.json manifests into PackageManifest values."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Tuple

from common.errors import MalformedManifest
from gather.models import Author, AuthorName, AuthorObject, PackageManifest, Sample, Yanked


def parse_manifest(text: str, source: str) -> PackageManifest:
    """Parse manifest JSON text.

    Args:
        text: Manifest content, already decoded from UTF-8.
        source: URL the manifest came from, used in error messages.

    Returns:
        PackageManifest

    Raises:
        MalformedManifest: If the JSON is invalid, a required field is
            missing, or a union-typed field has an unsupported shape.
    """
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise MalformedManifest(source, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedManifest(source, "manifest is not a JSON object")

    reader = _FieldReader(data, source)
    vrc_get = reader.optional_object("vrc-get")
    return PackageManifest(
        name=reader.required_str("name"),
        version=reader.required_str("version"),
        description=reader.optional_str("description"),
        display_name=reader.optional_str("displayName"),
        unity=reader.optional_str("unity"),
        author=_author(data["author"], source) if data.get("author") is not None else None,
        changelog_url=reader.optional_str("changelogUrl"),
        dependencies=reader.optional_str_map("dependencies"),
        samples=_samples(data.get("samples"), source),
        documentation_url=reader.optional_str("documentationUrl"),
        license=reader.optional_str("license"),
        hide_in_editor=reader.optional_bool("hideInEditor"),
        keywords=reader.optional_str_list("keywords"),
        licenses_url=reader.optional_str("licensesUrl"),
        unity_release=reader.optional_str("unityRelease"),
        vpm_dependencies=reader.optional_str_map("vpmDependencies"),
        vrchat_version=reader.optional_str("vrchatVersion"),
        legacy_folders=reader.optional_str_map("legacyFolders"),
        legacy_files=reader.optional_str_map("legacyFiles"),
        legacy_packages=reader.optional_str_list("legacyPackages"),
        yanked=_yanked(vrc_get.get("yanked") if vrc_get else None, source),
        vrc_get=vrc_get,
    )


def _author(value: Any, source: str) -> Author:
    if isinstance(value, str):
        return AuthorName(name=value)
    if isinstance(value, dict):
        name = value.get("name")
        if not isinstance(name, str):
            raise MalformedManifest(source, "author object has no name")
        reader = _FieldReader(value, source)
        return AuthorObject(name=name, email=reader.optional_str("email"), url=reader.optional_str("url"))
    raise MalformedManifest(source, "author must be a string or an object")


def _yanked(value: Any, source: str) -> Optional[Yanked]:
    if value is None:
        return None
    # bool first: it is the narrower JSON type
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value
    raise MalformedManifest(source, "vrc-get.yanked must be a string or a boolean")


def _samples(value: Any, source: str) -> Optional[Tuple[Sample, ...]]:
    if value is None:
        return None
    if not isinstance(value, list):
        raise MalformedManifest(source, "samples must be a list")
    samples = []
    for entry in value:
        if not isinstance(entry, dict):
            raise MalformedManifest(source, "each sample must be an object")
        reader = _FieldReader(entry, source)
        samples.append(Sample(
            display_name=reader.optional_str("displayName"),
            description=reader.optional_str("description"),
            path=reader.optional_str("path"),
        ))
    return tuple(samples)


class _FieldReader:
    """Typed accessors over one JSON object."""

    def __init__(self, data: Dict[str, Any], source: str):
        self._data = data
        self._source = source

    def required_str(self, key: str) -> str:
        value = self._data.get(key)
        if not isinstance(value, str) or not value:
            raise MalformedManifest(self._source, f"required field '{key}' is missing")
        return value

    def optional_str(self, key: str) -> Optional[str]:
        value = self._data.get(key)
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        raise MalformedManifest(self._source, f"field '{key}' must be a string")

    def optional_bool(self, key: str) -> Optional[bool]:
        value = self._data.get(key)
        if value is None or isinstance(value, bool):
            return value
        raise MalformedManifest(self._source, f"field '{key}' must be a boolean")

    def optional_object(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        if value is None or isinstance(value, dict):
            return value
        raise MalformedManifest(self._source, f"field '{key}' must be an object")

    def optional_str_map(self, key: str) -> Optional[Dict[str, str]]:
        value = self.optional_object(key)
        if value is None:
            return None
        result = {}
        for entry_key, entry_value in value.items():
            if not isinstance(entry_value, str):
                raise MalformedManifest(self._source, f"values of '{key}' must be strings")
            result[entry_key] = entry_value
        return result

    def optional_str_list(self, key: str) -> Optional[Tuple[str, ...]]:
        value = self._data.get(key)
        if value is None:
            return None
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise MalformedManifest(self._source, f"field '{key}' must be a list of strings")
        return tuple(value)
