"""MusicBrainz Cover Art Archive album art provider.

Uses MusicBrainz to search for release groups and Cover Art Archive
to locate the actual artwork. Free and community-driven, no API key.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.parse
import urllib.request

from musicrpc.api.album_art.provider import REQUEST_TIMEOUT, USER_AGENT, ArtworkLookupProvider

logger = logging.getLogger(__name__)

# MusicBrainz API endpoint
MUSICBRAINZ_API_URL = "https://musicbrainz.org/ws/2"

# Cover Art Archive endpoint
COVER_ART_URL = "https://coverartarchive.org"

# Artwork size suffix
ARTWORK_SIZE = "500"  # front-500 for 500px

# HTTP status for "no cover art uploaded"
HTTP_NOT_FOUND = 404


class MusicBrainzAlbumArtProvider(ArtworkLookupProvider):
    """Fetch album art URLs from MusicBrainz/Cover Art Archive.

    Two-step process:
    1. Search MusicBrainz for the release group MBID
    2. Ask Cover Art Archive where its front cover lives

    Example:
        provider = MusicBrainzAlbumArtProvider()
        url = provider.lookup("Fatboy Slim", "That Old Pair of Jeans")
    """

    @property
    def name(self) -> str:
        """Return provider name."""
        return "MusicBrainz"

    def lookup(self, artist: str, album: str) -> str | None:
        """Look up album art on Cover Art Archive."""
        if not artist or not album:
            return None

        mbid = self._search_release_group(artist, album)
        if not mbid:
            return None

        return self._resolve_cover(f"{COVER_ART_URL}/release-group/{mbid}/front-{ARTWORK_SIZE}")

    def _search_release_group(self, artist: str, album: str) -> str:
        """Search MusicBrainz for a release group MBID.

        Args:
            artist: Artist name.
            album: Album name.

        Returns:
            Release group MBID or empty string if not found.
        """
        # Build Lucene query for MusicBrainz
        query = urllib.parse.quote(f'artist:"{artist}" AND releasegroup:"{album}"')
        url = f"{MUSICBRAINZ_API_URL}/release-group/?query={query}&fmt=json&limit=1"

        result = self._fetch_json(url)
        groups = result.get("release-groups", [])
        if groups:
            mbid = groups[0].get("id", "")
            if mbid:
                logger.debug("Found MusicBrainz release group %s for %s - %s", mbid, artist, album)
            return mbid
        return ""

    def _resolve_cover(self, url: str) -> str | None:
        """Follow Cover Art Archive redirects to the image location.

        Note: Cover Art Archive answers with a 307 redirect to archive.org.
        urllib follows redirects for HEAD requests too.

        Args:
            url: Cover Art Archive front cover URL.

        Returns:
            Final image URL, or None if the release group has no cover.
        """
        req = urllib.request.Request(url, method="HEAD", headers={"User-Agent": USER_AGENT})
        try:
            with urllib.request.urlopen(req, timeout=REQUEST_TIMEOUT) as response:
                return response.geturl()
        except urllib.error.HTTPError as e:
            if e.code == HTTP_NOT_FOUND:
                return None
            raise
