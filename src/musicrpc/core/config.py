"""Configuration: settings model and QSettings-backed persistence."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import cast

from PySide6.QtCore import QSettings

from musicrpc.api.presence.discord import AUDIO_CLIENT_ID, VIDEO_CLIENT_ID

logger = logging.getLogger(__name__)

# Polling interval bounds in seconds
DEFAULT_INTERVAL = 10
MIN_INTERVAL = 5

DEFAULT_BUTTONS = ("yt",)


def clamp_interval(seconds: int) -> int:
    """Apply the polling interval floor."""
    return max(MIN_INTERVAL, int(seconds))


@dataclass(frozen=True)
class Settings:
    """Effective configuration of the daemon.

    Attributes:
        interval: Seconds between polls (at least MIN_INTERVAL).
        allowlist: Player name/id patterns, trailing ``*`` for prefix match.
        video_players: Players shown with the "Watching" identity.
        force_player_name: Override the shown player name.
        force_player_id: Override the player icon asset key.
        rpc_name: State line mode: "artist", "track" or "none".
        small_image: Small icon mode: "player", "lastfmAvatar", "status" or "none".
        buttons: Ordered button kinds.
        lastfm_name: Last.fm username for the profile button and avatar.
        listenbrainz_name: ListenBrainz username for the profile button.
        lastfm_api_key: Last.fm API key, empty disables Last.fm artwork.
        disable_cache: Do not persist artwork lookups.
        disable_musicbrainz_cover: Skip the MusicBrainz fallback.
        disable_mpris_art_url: Never show the player's own artwork.
        only_when_playing: Clear the presence while paused.
        hide_album_name: Do not show the album name caption.
        audio_client_id: Discord application of the audio identity.
        video_client_id: Discord application of the video identity.
        negative_cache_ttl: Seconds before a "no artwork" result is retried,
            0 keeps it forever.
        debug: Verbose logging.
    """

    interval: int = DEFAULT_INTERVAL
    allowlist: tuple[str, ...] = ()
    video_players: tuple[str, ...] = ()
    force_player_name: str = ""
    force_player_id: str = ""
    rpc_name: str = "artist"
    small_image: str = "playPause"
    buttons: tuple[str, ...] = field(default=DEFAULT_BUTTONS)
    lastfm_name: str = ""
    listenbrainz_name: str = ""
    lastfm_api_key: str = ""
    disable_cache: bool = False
    disable_musicbrainz_cover: bool = False
    disable_mpris_art_url: bool = False
    only_when_playing: bool = False
    hide_album_name: bool = False
    audio_client_id: str = AUDIO_CLIENT_ID
    video_client_id: str = VIDEO_CLIENT_ID
    negative_cache_ttl: int = 0
    debug: bool = False

    def __post_init__(self) -> None:
        """Enforce the interval floor."""
        object.__setattr__(self, "interval", clamp_interval(self.interval))


def _as_list(value: object) -> tuple[str, ...]:
    """Normalize a QSettings list value.

    INI files return a single-element list as a plain string.
    """
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        items = cast(list[object], list(value))
        return tuple(str(item) for item in items if item not in (None, ""))
    return ()


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - macOS: ~/Library/Preferences/com.music-rpc.music-rpc.plist
    - Linux: ~/.config/music-rpc/music-rpc.conf

    Example:
        config = ConfigManager()
        settings = config.load_settings()
        config.save_settings(replace(settings, interval=15))
    """

    def __init__(
        self,
        organization: str = "music-rpc",
        application: str = "music-rpc",
        path: Path | None = None,
    ) -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
            path: Explicit INI file, overrides the platform location.
        """
        if path is not None:
            self._settings = QSettings(str(path), QSettings.Format.IniFormat)
        else:
            self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    @property
    def location(self) -> str:
        """Return the file backing the configuration."""
        return self._settings.fileName()

    def load_settings(self) -> Settings:
        """Load persisted settings, using defaults for missing keys.

        Returns:
            Settings instance.
        """
        defaults = Settings()
        values: dict[str, object] = {}
        for f in fields(Settings):
            default = getattr(defaults, f.name)
            if not self._settings.contains(f.name):
                continue
            try:
                if isinstance(default, bool):
                    values[f.name] = bool(self._settings.value(f.name, default, bool))
                elif isinstance(default, int):
                    values[f.name] = int(self._settings.value(f.name, default, int))  # type: ignore[arg-type]
                elif isinstance(default, tuple):
                    values[f.name] = _as_list(self._settings.value(f.name, list(default)))
                else:
                    values[f.name] = str(self._settings.value(f.name, default, str))
            except (TypeError, ValueError) as e:
                logger.warning("Ignoring invalid config value for %s: %s", f.name, e)
        return Settings(**values)  # type: ignore[arg-type]

    def save_settings(self, settings: Settings) -> None:
        """Persist settings.

        Args:
            settings: Settings to store. The debug flag is not persisted.
        """
        for name, value in asdict(settings).items():
            if name == "debug":
                continue
            self._settings.setValue(name, list(value) if isinstance(value, tuple) else value)
        self._settings.sync()

    def get_interval(self) -> int:
        """Return the polling interval in seconds.

        Returns:
            Interval in seconds (default 10, at least 5).
        """
        value = self._settings.value("interval", DEFAULT_INTERVAL, int)
        return clamp_interval(int(value))  # type: ignore[arg-type]

    def set_interval(self, seconds: int) -> None:
        """Set the polling interval.

        Args:
            seconds: Interval in seconds (at least 5).
        """
        self._settings.setValue("interval", clamp_interval(seconds))

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
