"""Last.fm album art provider.

Uses the ``album.getInfo`` method of the Last.fm API. Requires an API key;
without one the provider is not constructed at all.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any

from musicrpc.api.album_art.provider import ArtworkLookupProvider

logger = logging.getLogger(__name__)

# Last.fm API endpoint
LASTFM_API_URL = "https://ws.audioscrobbler.com/2.0/"

# Image sizes in the order we prefer them
PREFERRED_SIZES = ("mega", "extralarge", "large", "medium", "small")


def _pick_image(images: Any) -> str:
    """Return the largest non-empty image URL from a Last.fm image list.

    Args:
        images: The "image" array of an album or user object.

    Returns:
        Image URL, or empty string if none is set.
    """
    if not isinstance(images, list):
        return ""

    by_size = {
        img.get("size", ""): img.get("#text", "")
        for img in images
        if isinstance(img, dict) and img.get("#text")
    }
    for size in PREFERRED_SIZES:
        if by_size.get(size):
            return by_size[size]
    # Unknown size labels: take the last one Last.fm listed
    return next(reversed(by_size.values()), "")


class LastFmAlbumArtProvider(ArtworkLookupProvider):
    """Fetch album art URLs from Last.fm.

    Example:
        provider = LastFmAlbumArtProvider(api_key)
        url = provider.lookup("Daft Punk", "Discovery")
    """

    def __init__(self, api_key: str) -> None:
        """Initialize with a Last.fm API key.

        Args:
            api_key: Last.fm API key.
        """
        self._api_key = api_key

    @property
    def name(self) -> str:
        """Return provider name."""
        return "Last.fm"

    def lookup(self, artist: str, album: str) -> str | None:
        """Look up album art with ``album.getInfo``."""
        if not artist or not album:
            return None

        data = self._call("album.getinfo", artist=artist, album=album, autocorrect="1")
        if "error" in data:
            logger.debug(
                "Last.fm error %s for %s - %s: %s",
                data.get("error"),
                artist,
                album,
                data.get("message", ""),
            )
            return None

        url = _pick_image((data.get("album") or {}).get("image"))
        return url or None

    def fetch_avatar(self, username: str) -> str:
        """Return the avatar URL of a Last.fm user.

        Args:
            username: Last.fm username.

        Returns:
            Avatar URL, or empty string if unavailable.
        """
        if not username:
            return ""
        try:
            data = self._call("user.getinfo", user=username)
        except (OSError, ValueError) as e:
            logger.warning("Could not fetch Last.fm avatar for %s: %s", username, e)
            return ""
        return _pick_image((data.get("user") or {}).get("image"))

    def _call(self, method: str, **params: str) -> dict[str, Any]:
        """Call a Last.fm API method and return the JSON response."""
        query = urllib.parse.urlencode(
            {"method": method, "api_key": self._api_key, "format": "json", **params}
        )
        return self._fetch_json(f"{LASTFM_API_URL}?{query}")
