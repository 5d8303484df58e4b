"""Album art module with fallback chain and persistent cache.

Provides album art URLs from multiple sources:
1. Last.fm album.getInfo - Best coverage, needs an API key
2. MusicBrainz Cover Art Archive - Community-driven, free
"""

from musicrpc.api.album_art.cache import MISSING_COVER, AlbumCache, CacheEntry, default_cache_path
from musicrpc.api.album_art.lastfm import LastFmAlbumArtProvider
from musicrpc.api.album_art.musicbrainz import MusicBrainzAlbumArtProvider
from musicrpc.api.album_art.provider import (
    AlbumQuery,
    ArtworkLookupProvider,
    FallbackChain,
    NamedStep,
)
from musicrpc.api.album_art.resolver import ArtworkResolver, is_remote_url, strip_release_suffix

__all__ = [
    "MISSING_COVER",
    "AlbumCache",
    "AlbumQuery",
    "ArtworkLookupProvider",
    "ArtworkResolver",
    "CacheEntry",
    "FallbackChain",
    "LastFmAlbumArtProvider",
    "MusicBrainzAlbumArtProvider",
    "NamedStep",
    "default_cache_path",
    "is_remote_url",
    "strip_release_suffix",
]
