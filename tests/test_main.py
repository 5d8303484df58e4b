"""Tests for the command-line entry point."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import FakeProvider, make_candidate

from musicrpc.__main__ import (
    apply_args,
    build_options,
    build_parser,
    build_resolver,
    get_player_id,
    list_players,
    log_published,
    main,
)
from musicrpc.api.presence import ButtonKind, PresencePayload, RpcName, SmallImageMode
from musicrpc.core.config import ConfigManager, Settings
from musicrpc.models import PlaybackPriority

PROXY = "org.mpris.MediaPlayer2.playerctld"


def parse(*argv: str) -> Settings:
    """Apply command-line flags over default settings."""
    return apply_args(Settings(), build_parser().parse_args(list(argv)))


class TestApplyArgs:
    """Tests for command-line overrides."""

    def test_no_flags_keep_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test persisted values survive when no flag is given."""
        monkeypatch.delenv("LASTFM_API_KEY", raising=False)
        persisted = Settings(interval=20, allowlist=("VLC",), only_when_playing=True)
        args = build_parser().parse_args([])
        assert apply_args(persisted, args) == persisted

    def test_flags_override(self) -> None:
        """Test scalar, list and boolean flags."""
        settings = parse(
            "-i", "7",
            "-a", "Spotify*", "-a", "VLC",
            "--video-player", "mpv",
            "--button", "lastfm", "--button", "mprisUrl",
            "--rpc-name", "track",
            "--only-when-playing",
            "--disable-cache",
        )
        assert settings.interval == 7
        assert settings.allowlist == ("Spotify*", "VLC")
        assert settings.video_players == ("mpv",)
        assert settings.buttons == ("lastfm", "mprisUrl")
        assert settings.rpc_name == "track"
        assert settings.only_when_playing is True
        assert settings.disable_cache is True
        assert settings.hide_album_name is False

    def test_interval_floor(self) -> None:
        """Test too short intervals are raised."""
        assert parse("-i", "1").interval == 5

    def test_api_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test LASTFM_API_KEY is used when no key is configured."""
        monkeypatch.setenv("LASTFM_API_KEY", "env-key")
        assert parse().lastfm_api_key == "env-key"
        assert parse("--lastfm-api-key", "flag-key").lastfm_api_key == "flag-key"


class TestBuildOptions:
    """Tests for mapping settings to payload options."""

    def test_mapping(self) -> None:
        """Test every option is carried over."""
        settings = Settings(
            rpc_name="none",
            small_image="lastfmAvatar",
            buttons=("yt", "bogus", "listenbrainz"),
            listenbrainz_name="me",
            disable_mpris_art_url=True,
        )
        options = build_options(settings, "https://lastfm/me.png")
        assert options.rpc_name is RpcName.NONE
        assert options.small_image is SmallImageMode.LASTFM_AVATAR
        assert options.buttons == (ButtonKind.YOUTUBE, ButtonKind.LISTENBRAINZ)
        assert options.lastfm_avatar == "https://lastfm/me.png"
        assert options.native_art_allowed is False


class TestBuildResolver:
    """Tests for resolver construction."""

    def test_disabled_cache(self) -> None:
        """Test --disable-cache skips the cache."""
        assert build_resolver(Settings(disable_cache=True), None).cache_enabled is False

    def test_no_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test caching is off without HOME."""
        monkeypatch.delenv("HOME", raising=False)
        assert build_resolver(Settings(), None).cache_enabled is False

    def test_cache_in_home(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test the cache is enabled with a home directory."""
        with patch("musicrpc.__main__.default_cache_path", return_value=tmp_path / "c.ini"):
            assert build_resolver(Settings(), None).cache_enabled is True


class TestIntrospection:
    """Tests for --list-players and --get-player-id."""

    def test_list_players_hides_proxy(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the proxy pseudo-source is never listed."""
        provider = FakeProvider(
            [make_candidate(PROXY, "playerctld"), make_candidate("org.mpris.MediaPlayer2.vlc", "VLC")]
        )
        assert list_players(provider) == 0

        out = capsys.readouterr().out
        assert " * VLC (org.mpris.MediaPlayer2.vlc)" in out
        assert "playerctld" not in out
        assert 'music-rpc -a "VLC"' in out

    def test_list_players_empty(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the message without players."""
        assert list_players(FakeProvider()) == 0
        assert "Could not find any player" in capsys.readouterr().out

    def test_list_players_unavailable(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test an unreachable backend."""
        provider = FakeProvider()
        provider.unavailable = True
        assert list_players(provider) == 1

    def test_get_player_id(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the sanitized id of the selected player is printed."""
        provider = FakeProvider(
            [
                make_candidate("a", "Strawberry Music Player"),
                make_candidate("b", "VLC media player", PlaybackPriority.PAUSED),
            ]
        )
        assert get_player_id(provider, Settings()) == 0
        assert "player_id: strawberry_music_player" in capsys.readouterr().out

    def test_get_player_id_none(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test no player detected."""
        assert get_player_id(FakeProvider(), Settings()) == 1


class TestLogPublished:
    """Tests for the activity_published log handler."""

    def test_logs_artwork(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the artwork and timestamps are logged at debug level."""
        payload = PresencePayload(
            details="Song", large_image="https://lastfm/album.png", start=100, end=300
        )
        with caplog.at_level(logging.DEBUG, logger="musicrpc.__main__"):
            log_published(payload)

        assert caplog.messages == [
            "Published 'Song' with artwork https://lastfm/album.png (start=100, end=300)"
        ]


class TestMain:
    """Tests for main()."""

    def test_list_players_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --list-players prints and exits without starting the loop."""
        provider = FakeProvider([make_candidate("org.mpris.MediaPlayer2.vlc", "VLC")])
        with (
            patch("musicrpc.__main__.create_provider", return_value=provider),
            patch("musicrpc.__main__.PresenceDaemon") as daemon_cls,
        ):
            code = main(["--config", str(tmp_path / "c.conf"), "--list-players"])

        assert code == 0
        daemon_cls.assert_not_called()
        assert "VLC" in capsys.readouterr().out

    def test_save_config(self, tmp_path: Path) -> None:
        """Test --save-config persists the effective settings."""
        config_path = tmp_path / "c.conf"
        with patch("musicrpc.__main__.create_provider", return_value=FakeProvider()):
            main(["--config", str(config_path), "-i", "30", "-a", "VLC", "--save-config",
                  "--list-players"])

        loaded = ConfigManager(path=config_path).load_settings()
        assert loaded.interval == 30
        assert loaded.allowlist == ("VLC",)

    def test_runs_daemon(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the daemon is started and the sinks are closed afterwards."""
        monkeypatch.delenv("LASTFM_API_KEY", raising=False)
        with (
            patch("musicrpc.__main__.create_provider", return_value=FakeProvider()),
            patch("musicrpc.__main__.DiscordSink") as sink_cls,
            patch("musicrpc.__main__.PresenceDaemon") as daemon_cls,
            patch("musicrpc.__main__.signal.signal"),
        ):
            code = main(["--config", str(tmp_path / "c.conf"), "--disable-cache"])

        assert code == 0
        daemon_cls.return_value.run.assert_called_once()
        daemon_cls.return_value.activity_published.connect.assert_called_once_with(log_published)
        assert sink_cls.return_value.close.call_count == 2

    def test_no_backend(self, tmp_path: Path) -> None:
        """Test unsupported platforms exit with an error."""
        with patch("musicrpc.__main__.create_provider", side_effect=ImportError("no gi")):
            assert main(["--config", str(tmp_path / "c.conf")]) == 1
