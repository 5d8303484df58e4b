"""Artwork resolution: cache, then lookup providers, then player artwork.

Resolution order:
1. Persistent cache (negative results included)
2. Primary provider (Last.fm)
3. Primary provider again without an Apple Music " - EP"/" - Single" suffix
4. Secondary provider (MusicBrainz)
5. The player's own artwork URL, if remote and allowed
"""

from __future__ import annotations

import logging
import time
import urllib.parse
from collections.abc import Callable

from musicrpc.api.album_art.cache import MISSING_COVER, AlbumCache
from musicrpc.api.album_art.provider import (
    AlbumQuery,
    ArtworkLookupProvider,
    FallbackChain,
    NamedStep,
)

logger = logging.getLogger(__name__)

# Qualifiers some libraries append that lookup catalogs do not carry
RELEASE_SUFFIXES = (" - EP", " - Single")


def strip_release_suffix(album: str) -> str:
    """Return the album name without a release-type suffix.

    Args:
        album: Album name, e.g. "Random Access Memories - EP".

    Returns:
        The stripped name, or empty string when there is no suffix.
    """
    name = album.strip()
    for suffix in RELEASE_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return ""


def is_remote_url(url: str) -> bool:
    """Check whether a URL points to an http(s) resource."""
    parsed = urllib.parse.urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class ArtworkResolver:
    """Resolve and cache artwork URLs for album identities.

    The resolver remembers the last album it resolved, so polling the same
    album repeatedly costs neither cache reads nor network calls.

    Example:
        resolver = ArtworkResolver(
            primary=LastFmAlbumArtProvider(api_key),
            secondary=MusicBrainzAlbumArtProvider(),
            cache=AlbumCache(path),
        )
        url = resolver.resolve("Daft Punk - Discovery", "Discovery", "Daft Punk")
    """

    def __init__(
        self,
        primary: ArtworkLookupProvider | None = None,
        secondary: ArtworkLookupProvider | None = None,
        cache: AlbumCache | None = None,
        negative_ttl: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the resolver.

        Args:
            primary: Primary lookup provider, None to skip it.
            secondary: Fallback lookup provider, None to skip it.
            cache: Persistent cache, None when caching is disabled.
            negative_ttl: Seconds after which a cached "no artwork" result
                is looked up again. None keeps negative results forever.
            clock: Time source, for tests.
        """
        self._primary = primary
        self._secondary = secondary
        self._cache = cache
        self._negative_ttl = negative_ttl
        self._clock = clock

        self._last_album_id: str | None = None
        self._last_cover = MISSING_COVER
        self._cache_hit = False

        lookup_steps = self._lookup_steps()
        self._chain = FallbackChain(lookup_steps)
        cached_steps = list(lookup_steps)
        if cache is not None:
            cached_steps.insert(0, NamedStep("cache", lambda q: self._from_cache(cache, q)))
        self._cached_chain = FallbackChain(cached_steps)

    @property
    def cache_enabled(self) -> bool:
        """Return True if results persist across restarts."""
        return self._cache is not None

    def lookup(self, query: AlbumQuery, force: bool = False) -> str:
        """Resolve the provider artwork of an album.

        Args:
            query: Album to resolve.
            force: Ignore the memo and the cache, and query providers again.

        Returns:
            Artwork URL or MISSING_COVER.
        """
        if not force and query.album_id == self._last_album_id:
            return self._last_cover

        self._cache_hit = False
        chain = self._chain if force else self._cached_chain
        cover = chain.run(query) or MISSING_COVER

        if self._cache is not None and not self._cache_hit:
            self._cache.put(query.album_id, cover, self._clock())

        self._last_album_id = query.album_id
        self._last_cover = cover
        return cover

    def resolve(
        self,
        album_id: str,
        album: str,
        album_artist: str,
        art_url: str = "",
        native_art_allowed: bool = True,
        force: bool = False,
    ) -> str:
        """Resolve the artwork to display for a track.

        Args:
            album_id: Album identity, the cache key.
            album: Album name.
            album_artist: Album artist.
            art_url: Artwork URL reported by the player.
            native_art_allowed: Whether the player's artwork may be used.
            force: Bypass memo and cache.

        Returns:
            Artwork URL, or MISSING_COVER.
        """
        cover = self.lookup(AlbumQuery(album_id, album, album_artist), force=force)
        if cover != MISSING_COVER:
            return cover
        if native_art_allowed and is_remote_url(art_url):
            return art_url
        return MISSING_COVER

    def _lookup_steps(self) -> list[NamedStep]:
        """Build the provider steps in fallback order."""
        steps: list[NamedStep] = []
        primary = self._primary
        if primary is not None:
            steps.append(NamedStep(primary.name, lambda q: primary.lookup(q.album_artist, q.album)))
            steps.append(
                NamedStep(
                    f"{primary.name} (without suffix)",
                    lambda q: self._without_suffix(primary, q),
                )
            )
        secondary = self._secondary
        if secondary is not None:
            steps.append(
                NamedStep(secondary.name, lambda q: secondary.lookup(q.album_artist, q.album))
            )
        return steps

    def _from_cache(self, cache: AlbumCache, query: AlbumQuery) -> str | None:
        """Return the cached result, negative sentinel included."""
        entry = cache.get(query.album_id)
        if entry is None:
            return None
        if (
            entry.is_negative
            and self._negative_ttl is not None
            and self._clock() - entry.resolved_at > self._negative_ttl
        ):
            logger.debug("Negative cache entry for %s expired", query.album_id)
            return None
        self._cache_hit = True
        return entry.url

    def _without_suffix(self, provider: ArtworkLookupProvider, query: AlbumQuery) -> str | None:
        """Retry a provider without a release-type suffix."""
        stripped = strip_release_suffix(query.album)
        if not stripped:
            return None
        logger.debug("Retrying %s without suffix: %s => %s", provider.name, query.album, stripped)
        return provider.lookup(query.album_artist, stripped)
