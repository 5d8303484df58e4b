"""Media source provider interface.

A provider enumerates the media players running on this machine and reads
their playback state. The reconciliation core depends only on this interface;
platform backends implement it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from musicrpc.models import MediaSnapshot, SourceCandidate

# Aggregator that mirrors whichever MPRIS player is active. Selecting it would
# track the same player twice, so it is never offered as a candidate.
PROXY_SOURCE_IDS = frozenset({"org.mpris.MediaPlayer2.playerctld"})


class ProviderUnavailableError(Exception):
    """The media source backend (D-Bus, media-control) cannot be reached."""


class SnapshotUnreadableError(Exception):
    """Playback state could not be read from a source."""


class MediaSourceProvider(ABC):
    """Abstract base class for platform media source backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend name for logging."""

    @abstractmethod
    def list_candidates(self) -> list[SourceCandidate]:
        """Enumerate the players that could be tracked.

        Proxy pseudo-sources are excluded.

        Returns:
            Candidates with playback priority and metadata quality filled in.

        Raises:
            ProviderUnavailableError: If the backend cannot be reached.
        """

    @abstractmethod
    def snapshot(self, source_id: str) -> MediaSnapshot:
        """Read the current playback state of one source.

        Args:
            source_id: Candidate id returned by list_candidates().

        Returns:
            Snapshot of the source.

        Raises:
            SnapshotUnreadableError: If the source vanished or returned garbage.
        """

    def active_source(self) -> SourceCandidate | None:
        """Return the player the backend considers active, if any.

        The default picks the best candidate by playback status, then
        metadata quality, then id.

        Raises:
            ProviderUnavailableError: If the backend cannot be reached.
        """
        candidates = [c for c in self.list_candidates() if c.id not in PROXY_SOURCE_IDS]
        return min(candidates, key=lambda c: c.sort_key, default=None)
