"""MPRIS media source backend for Linux.

Talks to the session bus through PyGObject's Gio bindings. Every call is a
blocking ``call_sync`` with a short timeout; no GLib main loop is needed.
"""

from __future__ import annotations

import logging
from typing import Any

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib  # noqa: E402

from musicrpc.api.sources.base import (  # noqa: E402
    PROXY_SOURCE_IDS,
    MediaSourceProvider,
    ProviderUnavailableError,
    SnapshotUnreadableError,
)
from musicrpc.api.sources.metadata import has_title_and_artist, snapshot_from_mpris  # noqa: E402
from musicrpc.models import MediaSnapshot, PlaybackPriority, SourceCandidate  # noqa: E402

logger = logging.getLogger(__name__)

MPRIS_PREFIX = "org.mpris.MediaPlayer2."
MPRIS_PATH = "/org/mpris/MediaPlayer2"
ROOT_INTERFACE = "org.mpris.MediaPlayer2"
PLAYER_INTERFACE = "org.mpris.MediaPlayer2.Player"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

DBUS_NAME = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"

# D-Bus call timeout in milliseconds
CALL_TIMEOUT_MS = 2000


class MprisSourceProvider(MediaSourceProvider):
    """Enumerate and read MPRIS players on the session bus.

    Example:
        provider = MprisSourceProvider()
        for candidate in provider.list_candidates():
            print(candidate.display_name, candidate.id)
    """

    def __init__(self) -> None:
        """Initialize without connecting; the bus is opened lazily."""
        self._bus: Gio.DBusConnection | None = None

    @property
    def name(self) -> str:
        """Return backend name."""
        return "MPRIS"

    def list_candidates(self) -> list[SourceCandidate]:
        """Enumerate MPRIS players, skipping the playerctld proxy."""
        candidates: list[SourceCandidate] = []
        for bus_name in self._player_bus_names():
            try:
                identity = self._get_property(bus_name, ROOT_INTERFACE, "Identity")
                props = self._get_all(bus_name, PLAYER_INTERFACE)
            except GLib.Error as e:
                # Players may exit between ListNames and the property read
                logger.debug("Skipping MPRIS player %s: %s", bus_name, e.message)
                continue

            metadata = props.get("Metadata") or {}
            candidates.append(
                SourceCandidate(
                    id=bus_name,
                    display_name=str(identity or bus_name.removeprefix(MPRIS_PREFIX)),
                    playback_priority=PlaybackPriority.from_status(
                        str(props.get("PlaybackStatus", ""))
                    ),
                    metadata_quality=0 if has_title_and_artist(metadata) else 1,
                )
            )
        return candidates

    def snapshot(self, source_id: str) -> MediaSnapshot:
        """Read Metadata, PlaybackStatus and Position of one player."""
        try:
            props = self._get_all(source_id, PLAYER_INTERFACE)
        except ProviderUnavailableError as e:
            raise SnapshotUnreadableError(str(e)) from e
        except GLib.Error as e:
            raise SnapshotUnreadableError(e.message) from e

        try:
            position = self._get_property(source_id, PLAYER_INTERFACE, "Position")
        except ProviderUnavailableError as e:
            raise SnapshotUnreadableError(str(e)) from e
        except GLib.Error:
            # Position is optional in MPRIS
            position = None

        return snapshot_from_mpris(
            source_id,
            props.get("Metadata") or {},
            str(props.get("PlaybackStatus", "")),
            int(position) if position is not None else None,
        )

    def _connection(self) -> Gio.DBusConnection:
        """Return the session bus connection, reconnecting if it was closed."""
        if self._bus is None or self._bus.is_closed():
            try:
                self._bus = Gio.bus_get_sync(Gio.BusType.SESSION, None)
            except GLib.Error as e:
                self._bus = None
                raise ProviderUnavailableError(e.message) from e
        return self._bus

    def _player_bus_names(self) -> list[str]:
        """List bus names that look like MPRIS players."""
        try:
            reply = self._connection().call_sync(
                DBUS_NAME,
                DBUS_PATH,
                DBUS_NAME,
                "ListNames",
                None,
                GLib.VariantType.new("(as)"),
                Gio.DBusCallFlags.NONE,
                CALL_TIMEOUT_MS,
                None,
            )
        except GLib.Error as e:
            self._bus = None
            raise ProviderUnavailableError(e.message) from e

        names: list[str] = reply.unpack()[0]
        return sorted(
            name
            for name in names
            if name.startswith(MPRIS_PREFIX) and name not in PROXY_SOURCE_IDS
        )

    def _get_all(self, bus_name: str, interface: str) -> dict[str, Any]:
        """Call Properties.GetAll and return unpacked values."""
        reply = self._connection().call_sync(
            bus_name,
            MPRIS_PATH,
            PROPERTIES_INTERFACE,
            "GetAll",
            GLib.Variant("(s)", (interface,)),
            GLib.VariantType.new("(a{sv})"),
            Gio.DBusCallFlags.NONE,
            CALL_TIMEOUT_MS,
            None,
        )
        return reply.unpack()[0]

    def _get_property(self, bus_name: str, interface: str, prop: str) -> Any:
        """Call Properties.Get for a single (uncached) property."""
        reply = self._connection().call_sync(
            bus_name,
            MPRIS_PATH,
            PROPERTIES_INTERFACE,
            "Get",
            GLib.Variant("(ss)", (interface, prop)),
            GLib.VariantType.new("(v)"),
            Gio.DBusCallFlags.NONE,
            CALL_TIMEOUT_MS,
            None,
        )
        return reply.unpack()[0]
