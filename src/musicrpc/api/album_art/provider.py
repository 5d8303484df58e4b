"""Base artwork lookup provider and fallback chain.

Defines the provider protocol and a fallback chain that runs resolver steps
in order until one produces an artwork URL.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# User agent for API requests (MusicBrainz requires contact info)
USER_AGENT = "music-rpc/0.1.0 (https://pypi.org/project/music-rpc/)"

# Request timeout in seconds
REQUEST_TIMEOUT = 5


@dataclass(frozen=True, slots=True)
class AlbumQuery:
    """Album identity to resolve artwork for.

    Attributes:
        album_id: Cache key, "album artist - album".
        album: Album name as reported by the player.
        album_artist: Album artist as reported by the player.
    """

    album_id: str
    album: str
    album_artist: str


class ArtworkLookupProvider(ABC):
    """Abstract base class for artwork lookup providers.

    Subclasses query one web service (Last.fm, MusicBrainz, etc.) for the
    cover URL of an album.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name for logging."""

    @abstractmethod
    def lookup(self, artist: str, album: str) -> str | None:
        """Look up the artwork URL of an album.

        Args:
            artist: Album artist.
            album: Album name.

        Returns:
            Artwork URL if found, None otherwise.

        Raises:
            urllib.error.URLError, TimeoutError, OSError, ValueError:
                On network or decoding failures.
        """

    def _fetch_json(self, url: str) -> dict[str, Any]:
        """Fetch JSON from URL (blocking).

        Args:
            url: URL to fetch.

        Returns:
            Parsed JSON.
        """
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        with urllib.request.urlopen(req, timeout=REQUEST_TIMEOUT) as response:
            return json.loads(response.read().decode())


# A resolver step returns a URL to stop the chain, or None to continue.
ResolverStep = Callable[[AlbumQuery], "str | None"]


@dataclass(frozen=True, slots=True)
class NamedStep:
    """A resolver step with a name for logging."""

    name: str
    run: ResolverStep


class FallbackChain:
    """Run resolver steps in order until one produces a URL.

    Network errors inside a step are logged and treated as "continue".

    Example:
        chain = FallbackChain([
            NamedStep("cache", cache_step),
            NamedStep("Last.fm", lastfm_step),
        ])
        url = chain.run(AlbumQuery("Artist - Album", "Album", "Artist"))
    """

    def __init__(self, steps: Sequence[NamedStep]) -> None:
        """Initialize with the steps to try.

        Args:
            steps: Steps to try in order.
        """
        self._steps = list(steps)

    @property
    def names(self) -> list[str]:
        """Return the step names in order."""
        return [step.name for step in self._steps]

    def run(self, query: AlbumQuery) -> str | None:
        """Try each step until one succeeds.

        Args:
            query: Album to resolve.

        Returns:
            URL from the first successful step, None if all fail.
        """
        for step in self._steps:
            try:
                url = step.run(query)
            except (urllib.error.URLError, TimeoutError, OSError, ValueError) as e:
                # Network errors are expected when providers are unavailable
                logger.debug("%s lookup failed for %s: %s", step.name, query.album_id, e)
                continue
            except Exception as e:  # noqa: BLE001
                logger.warning("%s unexpected error for %s: %s", step.name, query.album_id, e)
                continue

            if url:
                logger.debug("Artwork for %s found via %s", query.album_id, step.name)
                return url

        logger.debug("No artwork found for %s", query.album_id)
        return None
