"""Test fixtures and fakes for music-rpc tests."""

from __future__ import annotations

import os
from typing import Any

import pytest

# Run Qt headless when no display is available.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from musicrpc.api.album_art import ArtworkLookupProvider
from musicrpc.api.presence import PresenceSink, SinkError
from musicrpc.api.sources import (
    MediaSourceProvider,
    ProviderUnavailableError,
    SnapshotUnreadableError,
)
from musicrpc.models import MediaSnapshot, PlaybackPriority, SourceCandidate


def make_snapshot(**kwargs: Any) -> MediaSnapshot:
    """Build a playing snapshot with sensible defaults."""
    values: dict[str, Any] = {
        "source_id": "org.mpris.MediaPlayer2.A",
        "title": "Song",
        "artist": "Artist",
        "album": "Album",
        "album_artist": "Artist",
        "position": 10,
        "duration": 200,
        "has_position": True,
        "is_playing": True,
    }
    values.update(kwargs)
    return MediaSnapshot(**values)


def make_candidate(
    source_id: str,
    name: str | None = None,
    priority: PlaybackPriority = PlaybackPriority.PLAYING,
    quality: int = 0,
) -> SourceCandidate:
    """Build a candidate, playing with valid metadata by default."""
    return SourceCandidate(
        id=source_id,
        display_name=name or source_id.rsplit(".", 1)[-1],
        playback_priority=priority,
        metadata_quality=quality,
    )


class FakeProvider(MediaSourceProvider):
    """In-memory media source backend."""

    def __init__(
        self,
        candidates: list[SourceCandidate] | None = None,
        snapshots: dict[str, MediaSnapshot] | None = None,
    ) -> None:
        self.candidates = candidates or []
        self.snapshots = snapshots or {}
        self.unavailable = False
        self.snapshot_calls = 0

    @property
    def name(self) -> str:
        return "fake"

    def list_candidates(self) -> list[SourceCandidate]:
        if self.unavailable:
            raise ProviderUnavailableError("bus is down")
        return list(self.candidates)

    def snapshot(self, source_id: str) -> MediaSnapshot:
        self.snapshot_calls += 1
        if source_id not in self.snapshots:
            raise SnapshotUnreadableError(f"{source_id} vanished")
        return self.snapshots[source_id]


class FakeSink(PresenceSink):
    """Presence sink recording every call."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.activities: list[dict[str, Any]] = []
        self.fail_connect = False
        self.fail_set = False

    def connect(self) -> None:
        self.calls.append("connect")
        if self.fail_connect:
            raise SinkError("Discord is not running")

    def reconnect(self) -> None:
        self.calls.append("reconnect")
        if self.fail_connect:
            raise SinkError("Discord is not running")

    def set_activity(self, activity: dict[str, Any]) -> None:
        self.calls.append("set_activity")
        if self.fail_set:
            raise SinkError("pipe closed")
        self.activities.append(activity)

    def clear(self) -> None:
        self.calls.append("clear")

    def close(self) -> None:
        self.calls.append("close")

    def count(self, call: str) -> int:
        return self.calls.count(call)


class FakeLookup(ArtworkLookupProvider):
    """Lookup provider answering from a dict and counting calls."""

    def __init__(self, name: str = "fake", results: dict[str, str] | None = None) -> None:
        self._name = name
        self.results = results or {}
        self.calls: list[tuple[str, str]] = []
        self.error: Exception | None = None

    @property
    def name(self) -> str:
        return self._name

    def lookup(self, artist: str, album: str) -> str | None:
        self.calls.append((artist, album))
        if self.error is not None:
            raise self.error
        return self.results.get(album)


@pytest.fixture
def audio_sink() -> FakeSink:
    """Return the sink of the audio identity."""
    return FakeSink()


@pytest.fixture
def video_sink() -> FakeSink:
    """Return the sink of the video identity."""
    return FakeSink()
