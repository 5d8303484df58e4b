"""Tests for the persistent album cache."""

from pathlib import Path

import pytest

from musicrpc.api.album_art import MISSING_COVER, AlbumCache, CacheEntry, default_cache_path


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """Return a cache file location in a fresh directory."""
    return tmp_path / "music-rpc" / "album_cache.ini"


class TestAlbumCache:
    """Tests for AlbumCache."""

    def test_creates_directory(self, cache_path: Path) -> None:
        """Test the parent directory is created."""
        AlbumCache(cache_path)
        assert cache_path.parent.is_dir()

    def test_get_missing(self, cache_path: Path) -> None:
        """Test unknown albums return None."""
        assert AlbumCache(cache_path).get("Nobody - Nothing") is None

    def test_put_and_get(self, cache_path: Path) -> None:
        """Test storing a URL."""
        cache = AlbumCache(cache_path)
        cache.put("Daft Punk - Discovery", "https://img/discovery.jpg", resolved_at=1000.0)

        entry = cache.get("Daft Punk - Discovery")
        assert entry == CacheEntry("Daft Punk - Discovery", "https://img/discovery.jpg", 1000.0)
        assert entry.is_negative is False

    def test_negative_entry(self, cache_path: Path) -> None:
        """Test the negative sentinel is stored like any URL."""
        cache = AlbumCache(cache_path)
        cache.put("Nobody - Nothing", MISSING_COVER)

        entry = cache.get("Nobody - Nothing")
        assert entry is not None
        assert entry.is_negative is True
        assert entry.resolved_at > 0

    def test_survives_new_instance(self, cache_path: Path) -> None:
        """Test entries are persisted to disk immediately."""
        AlbumCache(cache_path).put("AC/DC - Back in Black", "https://img/bib.jpg")

        reopened = AlbumCache(cache_path)
        entry = reopened.get("AC/DC - Back in Black")
        assert entry is not None
        assert entry.url == "https://img/bib.jpg"
        assert cache_path.exists()

    def test_overwrite(self, cache_path: Path) -> None:
        """Test one record per album."""
        cache = AlbumCache(cache_path)
        cache.put("A - B", MISSING_COVER)
        cache.put("A - B", "https://img/b.jpg")
        assert len(cache) == 1
        entry = cache.get("A - B")
        assert entry is not None
        assert entry.url == "https://img/b.jpg"

    def test_special_characters_in_key(self, cache_path: Path) -> None:
        """Test slashes, equals signs and unicode in album ids."""
        cache = AlbumCache(cache_path)
        album_ids = ["AC/DC - High Voltage", "a=b - c;d", "Sigur Rós - Ágætis byrjun"]
        for i, album_id in enumerate(album_ids):
            cache.put(album_id, f"https://img/{i}.jpg")

        assert len(cache) == 3
        for i, album_id in enumerate(album_ids):
            entry = cache.get(album_id)
            assert entry is not None
            assert entry.url == f"https://img/{i}.jpg"

    def test_clear(self, cache_path: Path) -> None:
        """Test clearing every album."""
        cache = AlbumCache(cache_path)
        cache.put("A - B", "https://img/b.jpg")
        cache.clear()
        assert len(cache) == 0
        assert cache.get("A - B") is None

    def test_logs_new_and_loaded(
        self, cache_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test startup messages distinguish new and existing files."""
        with caplog.at_level("INFO", logger="musicrpc.api.album_art.cache"):
            AlbumCache(cache_path).put("A - B", "https://img/b.jpg")
            AlbumCache(cache_path)

        messages = [r.getMessage() for r in caplog.records]
        assert messages[0].startswith("Generated new cache file")
        assert messages[1].startswith("Cache loaded from file")


class TestDefaultCachePath:
    """Tests for default_cache_path()."""

    def test_no_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test caching is disabled without a home directory."""
        monkeypatch.delenv("HOME", raising=False)
        assert default_cache_path() is None

    def test_with_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test the file name inside the cache directory."""
        monkeypatch.setenv("HOME", str(tmp_path))
        path = default_cache_path()
        assert path is not None
        assert path.name == "album_cache.ini"
        assert path.parent.name == "music-rpc"
