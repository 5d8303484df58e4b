"""Mapping from a media snapshot to a Discord activity payload."""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any

from musicrpc.api.album_art.cache import MISSING_COVER
from musicrpc.models import MediaSnapshot

YOUTUBE_SEARCH_URL = "https://www.youtube.com/results?search_query={}"
LASTFM_PROFILE_URL = "https://www.last.fm/user/{}"
LISTENBRAINZ_PROFILE_URL = "https://listenbrainz.org/user/{}/"

# Discord rejects details/state shorter than this
MIN_TEXT_LENGTH = 2

MAX_BUTTONS = 2

YOUTUBE_THUMBNAIL_HOST = "ytimg.com/"


class ActivityType(IntEnum):
    """Discord activity types ("Listening to", "Watching")."""

    LISTENING = 2
    WATCHING = 3


class StatusDisplayType(IntEnum):
    """Which activity field Discord shows in the member list."""

    NAME = 0
    STATE = 1
    DETAILS = 2


class RpcName(StrEnum):
    """What the "Listening to ..." line shows."""

    ARTIST = "artist"
    TRACK = "track"
    NONE = "none"

    @classmethod
    def parse(cls, value: str) -> RpcName:
        """Parse a config value, defaulting to ARTIST."""
        try:
            return cls(value)
        except ValueError:
            return cls.ARTIST


class SmallImageMode(StrEnum):
    """What the small icon next to the album cover shows."""

    PLAYER = "player"
    LASTFM_AVATAR = "lastfmAvatar"
    STATUS = "status"
    NONE = "none"

    @classmethod
    def parse(cls, value: str) -> SmallImageMode:
        """Parse a config value; "playPause" and unknown values mean STATUS."""
        try:
            return cls(value)
        except ValueError:
            return cls.STATUS


class ButtonKind(StrEnum):
    """Kinds of activity buttons."""

    YOUTUBE = "yt"
    LASTFM = "lastfm"
    LISTENBRAINZ = "listenbrainz"
    SOURCE_URL = "sourceUrl"

    @classmethod
    def parse(cls, value: str) -> ButtonKind | None:
        """Parse a config value; "mprisUrl" is accepted for SOURCE_URL."""
        if value == "mprisUrl":
            return cls.SOURCE_URL
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class SourceIdentity:
    """How the tracked player is presented.

    Attributes:
        name: Player name shown as the small icon caption.
        asset_id: Discord asset key of the player icon.
        is_video: Use the video ("Watching") identity.
    """

    name: str
    asset_id: str
    is_video: bool = False


@dataclass(frozen=True, slots=True)
class PresenceOptions:
    """User preferences that shape the payload.

    Attributes:
        rpc_name: Naming mode of the state line.
        small_image: Small icon mode.
        buttons: Ordered button kinds.
        lastfm_name: Last.fm username for the profile button and avatar caption.
        listenbrainz_name: ListenBrainz username for the profile button.
        lastfm_avatar: Avatar URL for the lastfmAvatar icon mode.
        hide_album_name: Do not show the album as the large image caption.
        native_art_allowed: Player artwork may be shown.
    """

    rpc_name: RpcName = RpcName.ARTIST
    small_image: SmallImageMode = SmallImageMode.STATUS
    buttons: tuple[ButtonKind, ...] = (ButtonKind.YOUTUBE,)
    lastfm_name: str = ""
    listenbrainz_name: str = ""
    lastfm_avatar: str = ""
    hide_album_name: bool = False
    native_art_allowed: bool = True


@dataclass(frozen=True, slots=True)
class Button:
    """An activity button."""

    label: str
    url: str


@dataclass(frozen=True, slots=True)
class PresencePayload:
    """Everything shown in one Discord activity."""

    details: str
    large_image: str
    activity_type: ActivityType = ActivityType.LISTENING
    status_display_type: StatusDisplayType = StatusDisplayType.STATE
    state: str | None = None
    details_url: str | None = None
    large_text: str | None = None
    small_image: str | None = None
    small_text: str | None = None
    start: int | None = None
    end: int | None = None
    buttons: tuple[Button, ...] = field(default_factory=tuple)

    def to_activity(self) -> dict[str, Any]:
        """Return the activity object of a SET_ACTIVITY command."""
        activity: dict[str, Any] = {
            "type": int(self.activity_type),
            "status_display_type": int(self.status_display_type),
            "details": self.details,
        }
        if self.details_url:
            activity["details_url"] = self.details_url
        if self.state is not None:
            activity["state"] = self.state

        timestamps = {
            key: value for key, value in (("start", self.start), ("end", self.end)) if value
        }
        if timestamps:
            activity["timestamps"] = timestamps

        assets = {
            key: value
            for key, value in (
                ("large_image", self.large_image),
                ("large_text", self.large_text),
                ("small_image", self.small_image),
                ("small_text", self.small_text),
            )
            if value
        }
        activity["assets"] = assets

        if self.buttons:
            activity["buttons"] = [{"label": b.label, "url": b.url} for b in self.buttons]
        return activity


def _pad(text: str) -> str:
    """Pad text to Discord's minimum field length."""
    return text if len(text) >= MIN_TEXT_LENGTH else f"{text} "


def _encode(text: str) -> str:
    return urllib.parse.quote(text, safe="")


def youtube_search_url(snapshot: MediaSnapshot) -> str:
    """Return a YouTube search link for the snapshot's song."""
    return YOUTUBE_SEARCH_URL.format(_encode(snapshot.song_name))


def _state_line(snapshot: MediaSnapshot, identity: SourceIdentity, rpc_name: RpcName) -> str | None:
    """Return the state line, or None when it would show a placeholder."""
    if rpc_name is RpcName.ARTIST:
        state = _pad(snapshot.artist)
    else:
        state = f"by: {snapshot.artist}"

    lowered = state.lower()
    if identity.is_video and lowered == "by: unknown artist":
        return None
    if lowered == "unknown artist":
        return None
    return state


def _small_image(
    snapshot: MediaSnapshot,
    artwork_url: str,
    identity: SourceIdentity,
    options: PresenceOptions,
) -> tuple[str | None, str | None]:
    """Return (small_image, small_text) for the configured mode."""
    status = snapshot.status_text
    # Paused or stopped playback always shows the status icon
    if not snapshot.is_playing:
        return status, status

    mode = options.small_image
    if mode is SmallImageMode.PLAYER:
        if options.native_art_allowed and YOUTUBE_THUMBNAIL_HOST in artwork_url:
            return "youtube", "YouTube"
        return identity.asset_id, identity.name
    if mode is SmallImageMode.LASTFM_AVATAR:
        if options.lastfm_avatar:
            return options.lastfm_avatar, f"{options.lastfm_name} on Last.fm"
        return None, None
    if mode is SmallImageMode.NONE:
        return None, None
    return status, status


def build_buttons(
    snapshot: MediaSnapshot,
    identity: SourceIdentity,
    options: PresenceOptions,
) -> tuple[Button, ...]:
    """Build up to two distinct buttons in configured order.

    Args:
        snapshot: Current snapshot.
        identity: Presented player.
        options: User preferences.

    Returns:
        Buttons to attach.
    """
    search_url = youtube_search_url(snapshot)
    buttons: list[Button] = []
    seen_kinds: set[ButtonKind] = set()

    for kind in options.buttons:
        if len(buttons) == MAX_BUTTONS:
            break
        if kind in seen_kinds:
            continue

        button: Button | None = None
        if kind is ButtonKind.YOUTUBE:
            button = Button("Search this song on YouTube", search_url)
        elif kind is ButtonKind.LASTFM:
            if options.lastfm_name:
                button = Button(
                    "Last.fm profile", LASTFM_PROFILE_URL.format(_encode(options.lastfm_name))
                )
        elif kind is ButtonKind.LISTENBRAINZ:
            if options.listenbrainz_name:
                button = Button(
                    "Listenbrainz profile",
                    LISTENBRAINZ_PROFILE_URL.format(_encode(options.listenbrainz_name)),
                )
        elif kind is ButtonKind.SOURCE_URL:
            if not snapshot.track_url:
                button = Button("Search this song on YouTube", search_url)
            elif identity.is_video:
                button = Button("Watch Now", snapshot.track_url)
            else:
                button = Button("Play Now", snapshot.track_url)

        if button is None or any(b.url == button.url for b in buttons):
            continue
        buttons.append(button)
        seen_kinds.add(kind)

    return tuple(buttons)


def build_payload(
    snapshot: MediaSnapshot,
    artwork_url: str,
    identity: SourceIdentity,
    options: PresenceOptions,
    now: int,
) -> PresencePayload:
    """Map a snapshot to a presence payload.

    Args:
        snapshot: Current snapshot (must have a title and an artist).
        artwork_url: Resolved artwork, or MISSING_COVER.
        identity: Presented player.
        options: User preferences.
        now: Current Unix time in seconds.

    Returns:
        The payload.
    """
    small_image, small_text = _small_image(snapshot, artwork_url, identity, options)

    # Start of the track, or "now" when the player reports no position
    start = now - snapshot.position
    if snapshot.has_position and snapshot.duration > 0:
        end = start + snapshot.duration if snapshot.is_playing else None
        timestamps = (start, end)
    else:
        timestamps = (None, start)

    status_display = {
        RpcName.ARTIST: StatusDisplayType.STATE,
        RpcName.TRACK: StatusDisplayType.DETAILS,
        RpcName.NONE: StatusDisplayType.NAME,
    }[options.rpc_name]

    return PresencePayload(
        details=_pad(snapshot.title),
        details_url=youtube_search_url(snapshot),
        state=_state_line(snapshot, identity, options.rpc_name),
        activity_type=ActivityType.WATCHING if identity.is_video else ActivityType.LISTENING,
        status_display_type=status_display,
        large_image=artwork_url or MISSING_COVER,
        large_text=None if options.hide_album_name else f"album: {snapshot.album}",
        small_image=small_image,
        small_text=small_text,
        start=timestamps[0],
        end=timestamps[1],
        buttons=build_buttons(snapshot, identity, options),
    )
