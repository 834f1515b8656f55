"""Read a single named entry from a downloaded release archive."""

from __future__ import annotations

import io
import zipfile
from abc import ABC, abstractmethod

from common.errors import MalformedManifest, MissingManifestInArchive


class ArchiveReader(ABC):
    """Extracts one root-level entry from an in-memory archive."""

    @abstractmethod
    def read_root_entry(self, data: bytes, entry_name: str, source: str) -> str:
        """Return the UTF-8 text of ``entry_name`` at the archive root.

        Args:
            data: Raw archive bytes.
            entry_name: Entry to look up, e.g. "package.json".
            source: Archive URL, used in error messages.

        Raises:
            MissingManifestInArchive: If the entry is absent.
            MalformedManifest: If the archive or the entry cannot be decoded.
        """


class ZipArchiveReader(ArchiveReader):
    """ArchiveReader for zip-compatible containers."""

    def read_root_entry(self, data: bytes, entry_name: str, source: str) -> str:
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                try:
                    raw = archive.read(entry_name)
                except KeyError as exc:
                    raise MissingManifestInArchive(source) from exc
        except zipfile.BadZipFile as exc:
            raise MalformedManifest(source, f"not a valid zip archive: {exc}") from exc
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedManifest(source, f"{entry_name} is not UTF-8: {exc}") from exc
