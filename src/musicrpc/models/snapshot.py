"""Media snapshot model: one observation of a player's playback state."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MediaSnapshot:
    """Playback state of a media source at one instant.

    Attributes:
        source_id: Identifier of the source that produced the snapshot
            (MPRIS bus name or macOS bundle identifier).
        title: Track title (may be empty or "Unknown Title").
        artist: Track artist (may be empty or "Unknown Artist").
        album: Album name (may be empty or "Unknown Album").
        album_artist: Album artist, falls back to the track artist.
        position: Elapsed time in whole seconds.
        duration: Track length in whole seconds, 0 if unknown.
        has_position: Whether the source reported a playback position at all.
        is_playing: Whether playback is active.
        track_url: URL of the track as reported by the player.
        art_url: Artwork URL as reported by the player.
    """

    source_id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    album_artist: str = ""
    position: int = 0
    duration: int = 0
    has_position: bool = False
    is_playing: bool = False
    track_url: str = ""
    art_url: str = ""

    @property
    def album_id(self) -> str:
        """Return the album identity used as the artwork cache key."""
        return f"{self.album_artist} - {self.album}"

    @property
    def song_name(self) -> str:
        """Return "artist - title" for display and search links."""
        return f"{self.artist} - {self.title}"

    @property
    def status_text(self) -> str:
        """Return "playing" or "paused"."""
        return "playing" if self.is_playing else "paused"
