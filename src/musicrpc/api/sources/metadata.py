"""Conversion of backend metadata into snapshots.

Pure functions shared by the MPRIS and media-control backends, kept free of
platform imports so they can be tested anywhere.
"""

import re
from collections.abc import Mapping
from typing import Any

from musicrpc.models import MediaSnapshot

MICROSECONDS = 1_000_000

# Bundle ids whose last component is not a readable app name
_KNOWN_BUNDLE_NAMES = {
    "com.apple.Music": "Apple Music",
    "com.apple.podcasts": "Podcasts",
    "com.apple.Safari": "Safari",
    "com.spotify.client": "Spotify",
    "com.google.Chrome": "Google Chrome",
    "org.mozilla.firefox": "Firefox",
    "com.colliderli.iina": "IINA",
    "org.videolan.vlc": "VLC",
    "com.tidal.desktop": "TIDAL",
    "com.deezer.deezer-desktop": "Deezer",
}


def sanitize_name(name: str) -> str:
    """Turn a player name into a Discord asset key.

    Lowercases and replaces every run of characters other than letters and
    digits with a single underscore.

    Args:
        name: Player display name, e.g. "Strawberry Music Player".

    Returns:
        Asset key, e.g. "strawberry_music_player".
    """
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def app_name_from_bundle_id(bundle_id: str) -> str:
    """Return a readable app name for a macOS bundle identifier.

    Args:
        bundle_id: e.g. "com.spotify.client".

    Returns:
        Known app name, otherwise the last dotted component.
    """
    if bundle_id in _KNOWN_BUNDLE_NAMES:
        return _KNOWN_BUNDLE_NAMES[bundle_id]
    return bundle_id.rsplit(".", 1)[-1] or bundle_id


def _first(value: Any) -> str:
    """Return the first string of an MPRIS string-or-list field."""
    if isinstance(value, (list, tuple)):
        return str(value[0]) if value else ""
    return str(value) if value is not None else ""


def has_title_and_artist(metadata: Mapping[str, Any]) -> bool:
    """Check whether MPRIS metadata carries a title and a non-empty artist."""
    return bool(metadata.get("xesam:title")) and bool(_first(metadata.get("xesam:artist")))


def snapshot_from_mpris(
    source_id: str,
    metadata: Mapping[str, Any],
    status: str,
    position_us: int | None,
) -> MediaSnapshot:
    """Build a snapshot from MPRIS Player properties.

    Args:
        source_id: Bus name of the player.
        metadata: Unpacked ``Metadata`` property.
        status: ``PlaybackStatus`` property.
        position_us: ``Position`` property in microseconds, None if unsupported.

    Returns:
        The snapshot.
    """
    artist = _first(metadata.get("xesam:artist"))
    album_artist = _first(metadata.get("xesam:albumArtist")) or artist
    length_us = metadata.get("mpris:length") or 0
    try:
        duration = max(0, int(length_us) // MICROSECONDS)
    except (TypeError, ValueError):
        duration = 0

    has_position = position_us is not None and position_us >= 0
    position = int(position_us) // MICROSECONDS if has_position else 0

    return MediaSnapshot(
        source_id=source_id,
        title=_first(metadata.get("xesam:title")).strip(),
        artist=artist.strip(),
        album=_first(metadata.get("xesam:album")).strip(),
        album_artist=album_artist.strip(),
        position=position,
        duration=duration,
        has_position=has_position,
        is_playing=status.strip().lower() == "playing",
        track_url=_first(metadata.get("xesam:url")),
        art_url=_first(metadata.get("mpris:artUrl")),
    )


def snapshot_from_media_control(data: Mapping[str, Any]) -> MediaSnapshot:
    """Build a snapshot from ``media-control get`` JSON output.

    Args:
        data: Parsed JSON object.

    Returns:
        The snapshot.
    """
    elapsed = data.get("elapsedTime")
    duration = data.get("duration") or 0
    artist = str(data.get("artist") or "").strip()
    return MediaSnapshot(
        source_id=str(data.get("bundleIdentifier") or ""),
        title=str(data.get("title") or "").strip(),
        artist=artist,
        album=str(data.get("album") or "").strip(),
        album_artist=str(data.get("albumArtist") or artist).strip(),
        position=max(0, int(elapsed)) if elapsed is not None else 0,
        duration=max(0, int(duration)),
        has_position=elapsed is not None,
        is_playing=bool(data.get("playing")),
        track_url=str(data.get("url") or ""),
        art_url="",
    )
