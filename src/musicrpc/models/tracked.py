"""Mutable session state carried between reconciliation cycles."""

from dataclasses import dataclass

from musicrpc.models.snapshot import MediaSnapshot


@dataclass(slots=True)
class TrackedState:
    """What the presence currently shows and what was last polled.

    Attributes:
        title: Title of the last published snapshot.
        album: Album of the last published snapshot.
        artist: Artist of the last published snapshot.
        album_artist: Album artist of the last published snapshot.
        album_id: Album identity of the last published snapshot.
        is_playing: Playback flag of the last published snapshot.
        position: Position of the last *polled* usable snapshot.
        artwork_url: Artwork shown by the last publish.
        interrupted: The previous cycle skipped publishing for an external
            reason, so the next usable snapshot must be published.
        activity_set: The sink currently shows a presence.
    """

    title: str = ""
    album: str = ""
    artist: str = ""
    album_artist: str = ""
    album_id: str = ""
    is_playing: bool = False
    position: int = 0
    artwork_url: str = ""
    interrupted: bool = False
    activity_set: bool = False

    def record(self, snapshot: MediaSnapshot, artwork_url: str) -> None:
        """Remember the fields of a snapshot that is about to be published.

        Args:
            snapshot: Snapshot being published.
            artwork_url: Artwork chosen for it.
        """
        self.title = snapshot.title
        self.album = snapshot.album
        self.artist = snapshot.artist
        self.album_artist = snapshot.album_artist
        self.album_id = snapshot.album_id
        self.is_playing = snapshot.is_playing
        self.artwork_url = artwork_url
