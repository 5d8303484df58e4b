"""Persistent album artwork cache backed by an INI file via QSettings.

One record per album identity. The value is the resolved artwork URL or the
negative sentinel ``MISSING_COVER``, so albums without artwork are not looked
up again on every start.
"""

from __future__ import annotations

import logging
import os
import time
import urllib.parse
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QSettings, QStandardPaths

logger = logging.getLogger(__name__)

# Negative sentinel, also the name of the placeholder image asset
MISSING_COVER = "missing-cover"

CACHE_DIR_NAME = "music-rpc"
CACHE_FILE_NAME = "album_cache.ini"

_GROUP_ALBUMS = "albums"


def default_cache_path() -> Path | None:
    """Return the platform cache file location.

    Uses QStandardPaths' generic cache location ($XDG_CACHE_HOME or
    ~/.cache on Linux, ~/Library/Caches on macOS).

    Returns:
        Path of the cache file, or None when there is no home directory
        to write to.
    """
    if not os.environ.get("HOME"):
        return None
    base = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericCacheLocation)
    if not base:
        return None
    return Path(base) / CACHE_DIR_NAME / CACHE_FILE_NAME


def _encode_key(album_id: str) -> str:
    """Encode an album id so slashes do not create QSettings groups."""
    return urllib.parse.quote(album_id, safe="")


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """A cached artwork resolution.

    Attributes:
        album_id: Album identity ("album artist - album").
        url: Artwork URL or MISSING_COVER.
        resolved_at: Unix time of the resolution.
    """

    album_id: str
    url: str
    resolved_at: float = 0.0

    @property
    def is_negative(self) -> bool:
        """Return True if no artwork was found for this album."""
        return self.url == MISSING_COVER


class AlbumCache:
    """Key-value store for resolved artwork URLs.

    Every write is synced to disk immediately.

    Example:
        cache = AlbumCache(default_cache_path())
        cache.put("Daft Punk - Discovery", "https://...")
        entry = cache.get("Daft Punk - Discovery")
    """

    def __init__(self, path: Path) -> None:
        """Open (or create) the cache file.

        Args:
            path: INI file location.
        """
        self._path = path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Could not create cache directory %s: %s", path.parent, e)

        existed = path.exists()
        self._settings = QSettings(str(path), QSettings.Format.IniFormat)
        if existed:
            logger.info("Cache loaded from file: %s", path)
        else:
            logger.info("Generated new cache file: %s", path)

    @property
    def path(self) -> Path:
        """Return the cache file path."""
        return self._path

    def get(self, album_id: str) -> CacheEntry | None:
        """Return the cached entry for an album, if any.

        Args:
            album_id: Album identity.

        Returns:
            CacheEntry, or None if the album was never resolved.
        """
        prefix = f"{_GROUP_ALBUMS}/{_encode_key(album_id)}"
        url = self._settings.value(f"{prefix}/url", "", str)
        if not url:
            return None
        resolved_at = self._settings.value(f"{prefix}/resolved_at", 0.0, float)
        return CacheEntry(album_id=album_id, url=str(url), resolved_at=float(resolved_at))

    def put(self, album_id: str, url: str, resolved_at: float | None = None) -> None:
        """Store the resolution of an album and flush it to disk.

        Args:
            album_id: Album identity.
            url: Artwork URL or MISSING_COVER.
            resolved_at: Unix time, defaults to now.
        """
        prefix = f"{_GROUP_ALBUMS}/{_encode_key(album_id)}"
        self._settings.setValue(f"{prefix}/url", url)
        self._settings.setValue(
            f"{prefix}/resolved_at", resolved_at if resolved_at is not None else time.time()
        )
        self._settings.sync()
        if self._settings.status() != QSettings.Status.NoError:
            logger.warning("Could not write album cache %s", self._path)

    def __len__(self) -> int:
        """Return the number of cached albums."""
        self._settings.beginGroup(_GROUP_ALBUMS)
        try:
            return len(self._settings.childGroups())
        finally:
            self._settings.endGroup()

    def clear(self) -> None:
        """Remove every cached album."""
        self._settings.remove(_GROUP_ALBUMS)
        self._settings.sync()
