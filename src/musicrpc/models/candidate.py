"""Source candidate model: a discoverable media player."""

from dataclasses import dataclass
from enum import IntEnum


class PlaybackPriority(IntEnum):
    """Selection priority derived from a player's playback status.

    Lower values win.
    """

    PLAYING = 0
    PAUSED = 1
    OTHER = 2

    @classmethod
    def from_status(cls, status: str) -> "PlaybackPriority":
        """Map an MPRIS-style playback status string to a priority.

        Args:
            status: "Playing", "Paused", "Stopped" or anything else.

        Returns:
            The matching priority, OTHER for unknown statuses.
        """
        normalized = status.strip().lower()
        if normalized == "playing":
            return cls.PLAYING
        if normalized == "paused":
            return cls.PAUSED
        return cls.OTHER


@dataclass(frozen=True, slots=True)
class SourceCandidate:
    """A media source that could be tracked.

    Candidates are recomputed on every selection pass and never cached.

    Attributes:
        id: Stable identifier (D-Bus bus name or bundle identifier).
        display_name: Human readable player name.
        playback_priority: Priority from playback status.
        metadata_quality: 0 if the player exposes a title and an artist, 1 otherwise.
        allowlist_rank: Index of the first matching allowlist pattern, or None.
    """

    id: str
    display_name: str
    playback_priority: PlaybackPriority = PlaybackPriority.OTHER
    metadata_quality: int = 1
    allowlist_rank: int | None = None

    @property
    def is_playing(self) -> bool:
        """Return True if the candidate is actively playing."""
        return self.playback_priority is PlaybackPriority.PLAYING

    @property
    def has_valid_metadata(self) -> bool:
        """Return True if the candidate exposes a title and an artist."""
        return self.metadata_quality == 0

    @property
    def sort_key(self) -> tuple[int, int, int, str]:
        """Return the total ordering key used for selection.

        Candidates without an allowlist rank sort after every ranked one.
        """
        rank = self.allowlist_rank if self.allowlist_rank is not None else 1 << 31
        return (int(self.playback_priority), rank, self.metadata_quality, self.id)
