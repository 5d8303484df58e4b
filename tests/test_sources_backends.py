"""Tests for the media-control and MPRIS backends."""

import json
import subprocess
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from musicrpc.api.sources import ProviderUnavailableError, SnapshotUnreadableError
from musicrpc.api.sources.media_control import MediaControlSourceProvider
from musicrpc.models import PlaybackPriority

NOW_PLAYING = {
    "bundleIdentifier": "com.spotify.client",
    "title": "Song",
    "artist": "Artist",
    "album": "Album",
    "elapsedTime": 5,
    "duration": 100,
    "playing": True,
}


def completed(stdout: str, returncode: int = 0) -> subprocess.CompletedProcess[str]:
    """Return a finished media-control run."""
    return subprocess.CompletedProcess(["media-control", "get"], returncode, stdout, "boom")


class TestMediaControlProvider:
    """Tests for MediaControlSourceProvider."""

    @pytest.fixture
    def provider(self) -> MediaControlSourceProvider:
        """Return a provider with a fixed binary path."""
        return MediaControlSourceProvider(binary="/usr/local/bin/media-control")

    def test_list_candidates(self, provider: MediaControlSourceProvider) -> None:
        """Test the now-playing app is the only candidate."""
        with patch("subprocess.run", return_value=completed(json.dumps(NOW_PLAYING))) as run:
            candidates = provider.list_candidates()

        assert run.call_args.args[0] == ["/usr/local/bin/media-control", "get"]
        assert run.call_args.kwargs["timeout"] == 5
        assert len(candidates) == 1
        assert candidates[0].id == "com.spotify.client"
        assert candidates[0].display_name == "Spotify"
        assert candidates[0].playback_priority is PlaybackPriority.PLAYING
        assert candidates[0].has_valid_metadata is True

    def test_nothing_playing(self, provider: MediaControlSourceProvider) -> None:
        """Test null output means no candidates."""
        with patch("subprocess.run", return_value=completed("null\n")):
            assert provider.list_candidates() == []

    def test_missing_binary(self, provider: MediaControlSourceProvider) -> None:
        """Test a missing CLI makes the provider unavailable."""
        with (
            patch("subprocess.run", side_effect=FileNotFoundError()),
            pytest.raises(ProviderUnavailableError, match="not installed"),
        ):
            provider.list_candidates()

    def test_timeout(self, provider: MediaControlSourceProvider) -> None:
        """Test a hung CLI makes the provider unavailable."""
        with (
            patch("subprocess.run", side_effect=subprocess.TimeoutExpired("media-control", 5)),
            pytest.raises(ProviderUnavailableError),
        ):
            provider.list_candidates()

    def test_nonzero_exit(self, provider: MediaControlSourceProvider) -> None:
        """Test a failing CLI makes the provider unavailable."""
        with (
            patch("subprocess.run", return_value=completed("", returncode=1)),
            pytest.raises(ProviderUnavailableError),
        ):
            provider.list_candidates()

    def test_bad_json(self, provider: MediaControlSourceProvider) -> None:
        """Test garbage output makes the provider unavailable."""
        with (
            patch("subprocess.run", return_value=completed("{not json")),
            pytest.raises(ProviderUnavailableError),
        ):
            provider.list_candidates()

    def test_snapshot(self, provider: MediaControlSourceProvider) -> None:
        """Test reading the now-playing snapshot."""
        with patch("subprocess.run", return_value=completed(json.dumps(NOW_PLAYING))):
            snap = provider.snapshot("com.spotify.client")
        assert snap.source_id == "com.spotify.client"
        assert snap.position == 5

    def test_snapshot_errors(self, provider: MediaControlSourceProvider) -> None:
        """Test snapshot failures map to SnapshotUnreadableError."""
        with (
            patch("subprocess.run", return_value=completed("null")),
            pytest.raises(SnapshotUnreadableError),
        ):
            provider.snapshot("com.spotify.client")
        with (
            patch("subprocess.run", side_effect=FileNotFoundError()),
            pytest.raises(SnapshotUnreadableError),
        ):
            provider.snapshot("com.spotify.client")


class FakeBus:
    """Session bus answering MPRIS calls from dicts of GLib variants."""

    def __init__(self, glib: Any, players: dict[str, dict[str, Any]]) -> None:
        self._glib = glib
        self._players = players

    def is_closed(self) -> bool:
        return False

    def call_sync(
        self,
        bus_name: str,
        path: str,
        interface: str,
        method: str,
        params: Any,
        *args: Any,
    ) -> Any:
        glib = self._glib
        if method == "ListNames":
            names = ["org.freedesktop.DBus", "org.mpris.MediaPlayer2.playerctld", *self._players]
            return glib.Variant("(as)", (names,))

        player = self._players.get(bus_name)
        if player is None:
            raise glib.Error("no such player")

        if method == "GetAll":
            props = {
                "PlaybackStatus": glib.Variant("s", player["status"]),
                "Metadata": glib.Variant("a{sv}", player["metadata"]),
            }
            return glib.Variant("(a{sv})", (props,))

        interface_name, prop = params.unpack()
        if prop == "Identity":
            return glib.Variant("(v)", (glib.Variant("s", player["identity"]),))
        if prop == "Position" and "position" in player:
            return glib.Variant("(v)", (glib.Variant("x", player["position"]),))
        raise glib.Error(f"{interface_name}.{prop} not supported")


class TestMprisProvider:
    """Tests for MprisSourceProvider with a fake session bus."""

    @pytest.fixture
    def glib(self) -> Any:
        """Import GLib, skipping without PyGObject."""
        pytest.importorskip("gi")
        from gi.repository import GLib

        return GLib

    @pytest.fixture
    def provider(self, glib: Any) -> Any:
        """Return a provider talking to two fake players."""
        from musicrpc.api.sources.mpris import MprisSourceProvider

        players = {
            "org.mpris.MediaPlayer2.spotify": {
                "identity": "Spotify",
                "status": "Playing",
                "position": 42_000_000,
                "metadata": {
                    "xesam:title": glib.Variant("s", "Song"),
                    "xesam:artist": glib.Variant("as", ["Artist"]),
                    "xesam:album": glib.Variant("s", "Album"),
                    "mpris:length": glib.Variant("x", 200_000_000),
                },
            },
            "org.mpris.MediaPlayer2.vlc": {
                "identity": "VLC media player",
                "status": "Paused",
                "metadata": {},
            },
        }
        provider = MprisSourceProvider()
        provider._connection = MagicMock(return_value=FakeBus(glib, players))  # type: ignore[method-assign]
        return provider

    def test_list_candidates(self, provider: Any) -> None:
        """Test players are listed without the proxy."""
        candidates = provider.list_candidates()
        assert [c.id for c in candidates] == [
            "org.mpris.MediaPlayer2.spotify",
            "org.mpris.MediaPlayer2.vlc",
        ]
        spotify, vlc = candidates
        assert spotify.display_name == "Spotify"
        assert spotify.is_playing is True
        assert spotify.has_valid_metadata is True
        assert vlc.playback_priority is PlaybackPriority.PAUSED
        assert vlc.has_valid_metadata is False

    def test_active_source(self, provider: Any) -> None:
        """Test the playing player is the active one."""
        assert provider.active_source().id == "org.mpris.MediaPlayer2.spotify"

    def test_snapshot(self, provider: Any) -> None:
        """Test reading a full snapshot."""
        snap = provider.snapshot("org.mpris.MediaPlayer2.spotify")
        assert snap.title == "Song"
        assert snap.artist == "Artist"
        assert snap.position == 42
        assert snap.duration == 200
        assert snap.is_playing is True

    def test_snapshot_without_position(self, provider: Any) -> None:
        """Test players that do not report a position."""
        snap = provider.snapshot("org.mpris.MediaPlayer2.vlc")
        assert snap.has_position is False

    def test_snapshot_vanished(self, provider: Any) -> None:
        """Test a vanished player."""
        with pytest.raises(SnapshotUnreadableError):
            provider.snapshot("org.mpris.MediaPlayer2.gone")

    def test_snapshot_bus_lost_before_position(self, provider: Any) -> None:
        """Test a bus closing between the two reads makes the snapshot unreadable."""
        bus = provider._connection()
        provider._connection = MagicMock(  # type: ignore[method-assign]
            side_effect=[bus, ProviderUnavailableError("bus closed")]
        )
        with pytest.raises(SnapshotUnreadableError, match="bus closed"):
            provider.snapshot("org.mpris.MediaPlayer2.spotify")
