"""Tests for release filtering and work item expansion."""

from constants import Constants, FetchMode
from gather.classifier import classify, companion_of, filter_releases, split_into_work
from gather.models import Asset, AssetRole, FetchStrategy, Release


def _zip(name="pkg-1.0.0.zip", count=0, content_type="application/zip"):
    return Asset(name, content_type, f"https://dl.example/{name}", count)


def _manifest(name="package.json"):
    return Asset(name, "application/json", f"https://dl.example/{name}", 3)


def _unitypackage(name="pkg-1.0.0.unitypackage", count=0):
    return Asset(name, "application/octet-stream", f"https://dl.example/{name}", count)


def _release(*assets, body=None, tag="v1.0.0"):
    return Release(identifier=tag, body=body, assets=tuple(assets))


class TestAssetRole:
    """Asset classification by content type and name."""

    def test_zip_content_types(self):
        """Both zip content types are archives."""
        assert _zip().role is AssetRole.ARCHIVE
        assert _zip(content_type="application/x-zip-compressed").role is AssetRole.ARCHIVE

    def test_zip_name_is_case_insensitive(self):
        """The .zip suffix is matched regardless of case."""
        assert _zip(name="PKG.ZIP").role is AssetRole.ARCHIVE

    def test_zip_content_type_without_suffix_is_other(self):
        """A zip content type alone is not enough."""
        assert _zip(name="pkg.tar").role is AssetRole.OTHER

    def test_manifest_requires_exact_name(self):
        """Only a file named package.json is a manifest."""
        assert _manifest().role is AssetRole.MANIFEST
        assert _manifest("Package.JSON").role is AssetRole.MANIFEST
        assert _manifest("other.json").role is AssetRole.OTHER

    def test_companion(self):
        """.unitypackage attachments are companions."""
        assert _unitypackage().role is AssetRole.COMPANION

    def test_from_api(self):
        """Release API asset objects map onto Asset fields."""
        asset = Asset.from_api({
            "name": "pkg.zip",
            "content_type": "application/zip",
            "browser_download_url": "https://dl.example/pkg.zip",
            "download_count": 12,
        })
        assert asset == Asset("pkg.zip", "application/zip", "https://dl.example/pkg.zip", 12)


class TestFilterReleases:
    """Release filtering predicates."""

    def test_release_without_assets_is_dropped(self):
        """No assets means nothing to fetch."""
        assert filter_releases([_release()], FetchMode.EXCESSIVE_ALWAYS, True) == []

    def test_release_without_archive_is_dropped(self):
        """A manifest alone does not qualify a release."""
        release = _release(_manifest())
        assert filter_releases([release], FetchMode.PACKAGE_JSON_ASSET_ONLY, True) == []

    def test_hidden_release_is_dropped(self):
        """The hidden marker anywhere in the body excludes the release."""
        release = _release(_manifest(), _zip(), body=f"Notes\n{Constants.HIDDEN_BODY_TAG}\n")
        assert filter_releases([release], FetchMode.PACKAGE_JSON_ASSET_ONLY, True) == []

    def test_missing_body_is_not_hidden(self):
        """A release without a body is visible."""
        release = _release(_manifest(), _zip(), body=None)
        assert filter_releases([release], FetchMode.PACKAGE_JSON_ASSET_ONLY, True) == [release]

    def test_manifest_only_mode_requires_manifest(self):
        """Without archive fetching a manifest asset is mandatory."""
        release = _release(_zip())
        assert filter_releases([release], FetchMode.PACKAGE_JSON_ASSET_ONLY, True) == []

    def test_excessive_mode_tolerates_missing_manifest(self):
        """Archive-capable modes accept archive-only releases when tolerated."""
        release = _release(_zip())
        assert filter_releases([release], FetchMode.EXCESSIVE_WHEN_NEEDED, True) == [release]
        assert filter_releases([release], FetchMode.EXCESSIVE_ALWAYS, True) == [release]

    def test_excessive_mode_without_tolerance_requires_manifest(self):
        """Turning tolerance off makes the manifest mandatory again."""
        release = _release(_zip())
        assert filter_releases([release], FetchMode.EXCESSIVE_ALWAYS, False) == []

    def test_order_is_preserved(self):
        """Filtering keeps upstream order."""
        first = _release(_manifest(), _zip(), tag="v2")
        second = _release(_manifest(), _zip(), tag="v1")
        assert filter_releases([first, second], FetchMode.PACKAGE_JSON_ASSET_ONLY, True) == [first, second]

    def test_filter_is_idempotent(self):
        """Filtering an already filtered list changes nothing."""
        releases = [
            _release(_manifest(), _zip(), tag="v3"),
            _release(_zip(), tag="v2"),
            _release(tag="v1"),
        ]
        once = filter_releases(releases, FetchMode.EXCESSIVE_ALWAYS, True)
        assert filter_releases(once, FetchMode.EXCESSIVE_ALWAYS, True) == once


class TestSplitIntoWork:
    """Work item expansion per mode."""

    def test_manifest_only_mode(self):
        """Fetch the manifest asset; record the archive's URL and count."""
        release = _release(_manifest(), _zip(count=12))
        (item,) = split_into_work(release, FetchMode.PACKAGE_JSON_ASSET_ONLY)
        assert item.strategy is FetchStrategy.MANIFEST_ONLY
        assert item.fetch_url == "https://dl.example/package.json"
        assert item.download_url == "https://dl.example/pkg-1.0.0.zip"
        assert item.download_count == 12
        assert item.release == "v1.0.0"

    def test_when_needed_prefers_manifest_asset(self):
        """ExcessiveWhenNeeded downloads the manifest when one is attached."""
        release = _release(_manifest(), _zip())
        (item,) = split_into_work(release, FetchMode.EXCESSIVE_WHEN_NEEDED)
        assert item.strategy is FetchStrategy.MANIFEST_ONLY

    def test_always_fetches_archive(self):
        """ExcessiveAlways downloads the archive even with a manifest attached."""
        release = _release(_manifest(), _zip(count=5))
        (item,) = split_into_work(release, FetchMode.EXCESSIVE_ALWAYS)
        assert item.strategy is FetchStrategy.FULL_ARCHIVE
        assert item.fetch_url == item.download_url == "https://dl.example/pkg-1.0.0.zip"
        assert item.download_count == 5

    def test_archive_only_release_fans_out(self):
        """Every archive of a manifest-less release becomes its own item."""
        release = _release(_zip("a.zip", count=1), _zip("b.zip", count=2), _unitypackage())
        items = split_into_work(release, FetchMode.EXCESSIVE_WHEN_NEEDED)
        assert [item.fetch_url for item in items] == ["https://dl.example/a.zip", "https://dl.example/b.zip"]
        assert [item.download_count for item in items] == [1, 2]
        assert all(item.strategy is FetchStrategy.FULL_ARCHIVE for item in items)
        assert all(item.companion is None for item in items)

    def test_no_archive_yields_nothing(self):
        """A release without an archive never produces work."""
        assert split_into_work(_release(_manifest()), FetchMode.EXCESSIVE_ALWAYS) == []

    def test_companion_is_recorded(self):
        """The first .unitypackage attachment is carried on the item."""
        release = _release(_manifest(), _zip(), _unitypackage(count=7), _unitypackage("other.unitypackage"))
        (item,) = split_into_work(release, FetchMode.PACKAGE_JSON_ASSET_ONLY)
        assert item.companion == companion_of(release)
        assert item.companion.download_url == "https://dl.example/pkg-1.0.0.unitypackage"
        assert item.companion.download_count == 7


class TestClassify:
    """End-to-end classification."""

    def test_items_follow_release_order(self):
        """Work items come out in release order."""
        releases = [
            _release(_manifest(), _zip("new.zip"), tag="v2"),
            _release(_zip("hidden.zip"), body=Constants.HIDDEN_BODY_TAG, tag="v1.5"),
            _release(_zip("old.zip"), tag="v1"),
        ]
        items = classify(releases, FetchMode.EXCESSIVE_WHEN_NEEDED, True)
        assert [item.release for item in items] == ["v2", "v1"]
        assert [item.strategy for item in items] == [FetchStrategy.MANIFEST_ONLY, FetchStrategy.FULL_ARCHIVE]
