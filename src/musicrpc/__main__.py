"""Main entry point for the music-rpc daemon."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import signal
import sys
from collections.abc import Sequence
from pathlib import Path

from musicrpc import __version__
from musicrpc.api.album_art import (
    AlbumCache,
    ArtworkResolver,
    LastFmAlbumArtProvider,
    MusicBrainzAlbumArtProvider,
    default_cache_path,
)
from musicrpc.api.presence import (
    ButtonKind,
    PresenceOptions,
    PresencePayload,
    RpcName,
    SmallImageMode,
)
from musicrpc.api.presence.discord import DiscordSink
from musicrpc.api.sources import (
    PROXY_SOURCE_IDS,
    MediaSourceProvider,
    ProviderUnavailableError,
    create_provider,
)
from musicrpc.api.sources.metadata import sanitize_name
from musicrpc.core.config import ConfigManager, Settings
from musicrpc.core.daemon import PresenceDaemon
from musicrpc.core.publisher import PresencePublisher
from musicrpc.core.selector import acquire_source

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)

PROG = "music-rpc"

# Settings fields that map 1:1 to a command-line option of the same name
_SCALAR_OPTIONS = (
    "interval",
    "force_player_name",
    "force_player_id",
    "rpc_name",
    "small_image",
    "lastfm_name",
    "listenbrainz_name",
    "lastfm_api_key",
    "negative_cache_ttl",
    "disable_cache",
    "disable_musicbrainz_cover",
    "disable_mpris_art_url",
    "only_when_playing",
    "hide_album_name",
    "debug",
)
_LIST_OPTIONS = ("allowlist", "video_players", "buttons")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser.

    Every option defaults to None so that only flags given on the command
    line override persisted settings.
    """
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Discord Rich Presence for the media player you are listening to",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-i", "--interval", type=int, default=None, help="seconds between polls (min 5)",
    )
    parser.add_argument(
        "-a", "--allowlist", action="append", default=None, metavar="PLAYER",
        help="only use this player (name or id, trailing * for prefix); repeatable",
    )
    parser.add_argument(
        "--video-player", dest="video_players", action="append", default=None,
        metavar="PLAYER", help='show this player as "Watching"; repeatable',
    )
    parser.add_argument("--force-player-name", default=None, help="override the shown player name")
    parser.add_argument("--force-player-id", default=None, help="override the player icon id")
    parser.add_argument(
        "--rpc-name", default=None, choices=[m.value for m in RpcName],
        help="what the status line shows (default: artist)",
    )
    parser.add_argument(
        "--small-image", default=None,
        choices=[*(m.value for m in SmallImageMode), "playPause"],
        help="small icon next to the cover (default: playPause)",
    )
    parser.add_argument(
        "--button", dest="buttons", action="append", default=None,
        choices=[*(m.value for m in ButtonKind), "mprisUrl"],
        help="activity button, at most two are shown; repeatable",
    )
    parser.add_argument("--lastfm-name", default=None, help="Last.fm username")
    parser.add_argument("--listenbrainz-name", default=None, help="ListenBrainz username")
    parser.add_argument(
        "--lastfm-api-key", default=None,
        help="Last.fm API key (default: $LASTFM_API_KEY)",
    )
    parser.add_argument(
        "--negative-cache-ttl", type=int, default=None, metavar="SECONDS",
        help='retry "no artwork" albums after this many seconds (0: never)',
    )
    parser.add_argument(
        "--disable-cache", action="store_true", default=None, help="do not persist artwork",
    )
    parser.add_argument(
        "--disable-musicbrainz-cover", action="store_true", default=None,
        help="do not look up artwork on MusicBrainz",
    )
    parser.add_argument(
        "--disable-mpris-art-url", action="store_true", default=None,
        help="never show the artwork reported by the player",
    )
    parser.add_argument(
        "--only-when-playing", action="store_true", default=None,
        help="clear the status while playback is paused",
    )
    parser.add_argument(
        "--hide-album-name", action="store_true", default=None,
        help="do not show the album name",
    )
    parser.add_argument("--debug", action="store_true", default=None, help="verbose logging")
    parser.add_argument(
        "--list-players", action="store_true", help="list available players and exit",
    )
    parser.add_argument(
        "--get-player-id", action="store_true", help="print the active player's id and exit",
    )
    parser.add_argument(
        "--save-config", action="store_true", help="persist the effective settings",
    )
    parser.add_argument(
        "--config", type=Path, default=None, metavar="FILE",
        help="use this INI file instead of the platform config location",
    )
    return parser


def apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    """Override persisted settings with the flags given on the command line.

    Args:
        settings: Persisted settings.
        args: Parsed arguments.

    Returns:
        Effective settings.
    """
    overrides: dict[str, object] = {}
    for name in _SCALAR_OPTIONS:
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    for name in _LIST_OPTIONS:
        value = getattr(args, name)
        if value is not None:
            overrides[name] = tuple(value)

    if not (overrides.get("lastfm_api_key") or settings.lastfm_api_key):
        env_key = os.environ.get("LASTFM_API_KEY", "")
        if env_key:
            overrides["lastfm_api_key"] = env_key

    return dataclasses.replace(settings, **overrides)  # type: ignore[arg-type]


def build_options(settings: Settings, lastfm_avatar: str = "") -> PresenceOptions:
    """Map settings to payload preferences."""
    kinds: list[ButtonKind] = []
    for value in settings.buttons:
        kind = ButtonKind.parse(value)
        if kind is None:
            logger.warning("Ignoring unknown button type: %s", value)
            continue
        kinds.append(kind)
    return PresenceOptions(
        rpc_name=RpcName.parse(settings.rpc_name),
        small_image=SmallImageMode.parse(settings.small_image),
        buttons=tuple(kinds),
        lastfm_name=settings.lastfm_name,
        listenbrainz_name=settings.listenbrainz_name,
        lastfm_avatar=lastfm_avatar,
        hide_album_name=settings.hide_album_name,
        native_art_allowed=not settings.disable_mpris_art_url,
    )


def build_resolver(settings: Settings, lastfm: LastFmAlbumArtProvider | None) -> ArtworkResolver:
    """Build the artwork resolver with the enabled providers and cache."""
    cache: AlbumCache | None = None
    if settings.disable_cache:
        logger.info("Album cache disabled")
    else:
        path = default_cache_path()
        if path is None:
            logger.warning("No home directory, album cache disabled")
        else:
            cache = AlbumCache(path)

    secondary = None if settings.disable_musicbrainz_cover else MusicBrainzAlbumArtProvider()
    return ArtworkResolver(
        primary=lastfm,
        secondary=secondary,
        cache=cache,
        negative_ttl=settings.negative_cache_ttl or None,
    )


def list_players(provider: MediaSourceProvider) -> int:
    """Print the available players with usage hints.

    Returns:
        Exit code.
    """
    try:
        candidates = [c for c in provider.list_candidates() if c.id not in PROXY_SOURCE_IDS]
    except ProviderUnavailableError as e:
        print(f"Could not list players: {e}")
        return 1

    if not candidates:
        print(f"Could not find any player using {provider.name}.")
        return 0

    print()
    print(f"List of available players using {provider.name}:")
    for candidate in candidates:
        print(f" * {candidate.display_name} ({candidate.id})")

    example = candidates[0]
    print()
    print("Use the name or id to choose which player is shown in your Discord status.")
    print("Usage instructions:")
    print()
    print(f' {PROG} -a "{example.display_name}"')
    print(f' {PROG} -a "{example.id}"')
    print()
    print("You can use the -a argument multiple times to add more than one player:")
    print()
    print(f' {PROG} -a "{example.display_name}" -a "Second Player" -a "Any other player"')
    return 0


def log_published(payload: PresencePayload) -> None:
    """Log the artwork and timestamps of a published activity."""
    logger.debug(
        "Published %r with artwork %s (start=%s, end=%s)",
        payload.details,
        payload.large_image,
        payload.start,
        payload.end,
    )


def get_player_id(provider: MediaSourceProvider, settings: Settings) -> int:
    """Print the icon id of the player that would be tracked.

    Returns:
        Exit code.
    """
    try:
        candidate = acquire_source(provider, settings.allowlist)
    except ProviderUnavailableError as e:
        print(f"Could not find players: {e}")
        return 1
    if candidate is None:
        print("No player detected.")
        return 1
    print()
    print(f"player_id: {sanitize_name(candidate.display_name)}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the music-rpc daemon.

    Returns:
        Exit code (0 for success).
    """
    args = build_parser().parse_args(argv)

    config = ConfigManager(path=args.config)
    settings = apply_args(config.load_settings(), args)

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
    )
    logger.debug("Effective settings: %s", settings)

    if args.save_config:
        config.save_settings(settings)
        logger.info("Settings saved to %s", config.location)

    try:
        provider = create_provider()
    except (ProviderUnavailableError, ImportError, ValueError) as e:
        logger.error("No media source backend available: %s", e)
        return 1

    if args.list_players:
        return list_players(provider)
    if args.get_player_id:
        return get_player_id(provider, settings)

    lastfm: LastFmAlbumArtProvider | None = None
    if settings.lastfm_api_key:
        lastfm = LastFmAlbumArtProvider(settings.lastfm_api_key)
    else:
        logger.warning(
            "No Last.fm API key configured (--lastfm-api-key or LASTFM_API_KEY), "
            "Last.fm artwork disabled"
        )

    avatar = ""
    if SmallImageMode.parse(settings.small_image) is SmallImageMode.LASTFM_AVATAR:
        if lastfm is not None and settings.lastfm_name:
            avatar = lastfm.fetch_avatar(settings.lastfm_name)
        else:
            logger.warning("lastfmAvatar needs a Last.fm username and API key")

    publisher = PresencePublisher(
        DiscordSink(settings.audio_client_id),
        DiscordSink(settings.video_client_id),
        options=build_options(settings, avatar),
    )
    daemon = PresenceDaemon(provider, publisher, build_resolver(settings, lastfm), settings)
    daemon.activity_published.connect(log_published)

    # SIGTERM stops the loop like Ctrl+C does
    signal.signal(signal.SIGTERM, lambda *_: daemon.stop())

    logger.info("Starting music-rpc %s", __version__)
    try:
        daemon.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        daemon.stop()
    finally:
        publisher.clear(daemon.state)
        publisher.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
