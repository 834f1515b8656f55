"""Tests for work item fetching."""

import asyncio
import hashlib
import io
import json
import zipfile

import pytest

from common.errors import MalformedManifest, OperationCancelled, TransportError
from gather.cancellation import CancellationToken
from gather.fetcher import ManifestFetcher
from gather.models import CompanionPackage, FetchStrategy, WorkItem


def _manifest_text(name="com.example.pkg", version="1.0.0", **fields):
    data = {"name": name, "version": version}
    data.update(fields)
    return json.dumps(data)


def _zip_bytes(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


class _FakeHttp:
    """Serves canned bodies keyed by URL."""

    def __init__(self, text=None, binary=None):
        self.text = text or {}
        self.binary = binary or {}

    async def get_text(self, url, *, context, accept="application/json"):
        if url not in self.text:
            raise TransportError(url, 404)
        return self.text[url]

    async def get_bytes(self, url, *, context):
        if url not in self.binary:
            raise TransportError(url, 404)
        return self.binary[url]


def _item(fetch_url, strategy, download_url="https://dl.example/pkg.zip", count=12, companion=None, release="v1"):
    return WorkItem(
        fetch_url=fetch_url,
        download_url=download_url,
        download_count=count,
        strategy=strategy,
        companion=companion,
        release=release,
    )


def _fetch(fetcher, item, token=None):
    return asyncio.run(fetcher.fetch(item, token or CancellationToken()))


class TestManifestFetcher:
    """Manifest-only and full-archive strategies."""

    def test_manifest_only(self):
        """A bare manifest yields a version with no archive hash."""
        url = "https://dl.example/package.json"
        fetcher = ManifestFetcher(_FakeHttp(text={url: _manifest_text()}))
        companion = CompanionPackage("https://dl.example/pkg.unitypackage", 4)

        result = _fetch(fetcher, _item(url, FetchStrategy.MANIFEST_ONLY, companion=companion))

        assert result.success
        version = result.version
        assert version.name == "com.example.pkg"
        assert version.version == "1.0.0"
        assert version.url == "https://dl.example/pkg.zip"
        assert version.download_count == 12
        assert version.zip_sha256 is None
        assert version.unitypackage_url == "https://dl.example/pkg.unitypackage"
        assert version.unitypackage_download_count == 4

    def test_full_archive_hashes_bytes(self):
        """The archive hash is the lowercase hex SHA-256 of the downloaded bytes."""
        url = "https://dl.example/pkg.zip"
        data = _zip_bytes({"package.json": _manifest_text(version="2.1.0")})
        fetcher = ManifestFetcher(_FakeHttp(binary={url: data}))

        result = _fetch(fetcher, _item(url, FetchStrategy.FULL_ARCHIVE, download_url=url))

        assert result.version.version == "2.1.0"
        assert result.version.zip_sha256 == hashlib.sha256(data).hexdigest()

    def test_archive_without_manifest_is_a_miss(self):
        """A non-package archive is skipped, not fatal."""
        url = "https://dl.example/docs.zip"
        fetcher = ManifestFetcher(_FakeHttp(binary={url: _zip_bytes({"README.md": "hi"})}))

        result = _fetch(fetcher, _item(url, FetchStrategy.FULL_ARCHIVE, download_url=url))

        assert not result.success
        assert result.version is None

    def test_malformed_manifest_is_fatal(self):
        """A manifest without name aborts."""
        url = "https://dl.example/package.json"
        fetcher = ManifestFetcher(_FakeHttp(text={url: json.dumps({"version": "1.0.0"})}))
        with pytest.raises(MalformedManifest):
            _fetch(fetcher, _item(url, FetchStrategy.MANIFEST_ONLY))

    def test_unparseable_version_is_fatal(self):
        """The version must be usable for precedence."""
        url = "https://dl.example/package.json"
        fetcher = ManifestFetcher(_FakeHttp(text={url: _manifest_text(version="latest")}))
        with pytest.raises(MalformedManifest):
            _fetch(fetcher, _item(url, FetchStrategy.MANIFEST_ONLY))

    def test_transport_error_propagates(self):
        """Non-success responses are not turned into misses."""
        fetcher = ManifestFetcher(_FakeHttp())
        with pytest.raises(TransportError):
            _fetch(fetcher, _item("https://dl.example/gone.zip", FetchStrategy.FULL_ARCHIVE))

    def test_cancelled_token_stops_before_fetching(self):
        """No request is made once the run is cancelled."""
        token = CancellationToken()
        token.cancel()
        fetcher = ManifestFetcher(_FakeHttp())
        with pytest.raises(OperationCancelled):
            _fetch(fetcher, _item("https://dl.example/package.json", FetchStrategy.MANIFEST_ONLY), token)
