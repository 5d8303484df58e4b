"""Discord IPC presence sink built on pypresence."""

from __future__ import annotations

import asyncio
import logging
import os
import uuid
from typing import Any

from pypresence import Presence
from pypresence.exceptions import PyPresenceException

from musicrpc.api.presence.sink import PresenceSink, SinkError

logger = logging.getLogger(__name__)

# Discord applications that carry the player icons and placeholder assets
AUDIO_CLIENT_ID = "1129859263741837373"
VIDEO_CLIENT_ID = "1356756023813210293"

# Errors pypresence lets through besides its own exception hierarchy
_TRANSPORT_ERRORS = (PyPresenceException, OSError, RuntimeError)


def set_activity_command(activity: dict[str, Any]) -> dict[str, Any]:
    """Wrap an activity object in a SET_ACTIVITY command.

    Sending the raw command keeps newer activity fields (type,
    status_display_type, details_url) independent of the pypresence version.
    """
    return {
        "cmd": "SET_ACTIVITY",
        "args": {"pid": os.getpid(), "activity": activity},
        "nonce": str(uuid.uuid4()),
    }


class DiscordSink(PresenceSink):
    """Presence sink talking to the local Discord client.

    Example:
        sink = DiscordSink(AUDIO_CLIENT_ID)
        sink.connect()
        sink.set_activity({"type": 2, "details": "Song"})
    """

    def __init__(self, client_id: str) -> None:
        """Initialize without connecting.

        Args:
            client_id: Discord application id.
        """
        self._client_id = client_id
        self._rpc: Presence | None = None

    @property
    def client_id(self) -> str:
        """Return the Discord application id."""
        return self._client_id

    def connect(self) -> None:
        """Open an IPC connection to Discord.

        pypresence gives every client an event loop and replaces it with a
        fresh one on connect; loops that end up unused are closed here.
        """
        rpc: Presence | None = None
        initial_loop: asyncio.AbstractEventLoop | None = None
        try:
            rpc = Presence(self._client_id)
            initial_loop = rpc.loop
            rpc.connect()
        except _TRANSPORT_ERRORS as e:
            if rpc is not None:
                _discard(rpc)
            raise SinkError(f"Could not connect to Discord: {e}") from e
        finally:
            if initial_loop is not None and rpc is not None and initial_loop is not rpc.loop:
                _close_loop(initial_loop)
        self._rpc = rpc

    def reconnect(self) -> None:
        """Replace the connection with a fresh one."""
        self.close()
        self.connect()

    def set_activity(self, activity: dict[str, Any]) -> None:
        """Send a SET_ACTIVITY command."""
        rpc = self._require_connection()
        try:
            rpc.update(payload_override=set_activity_command(activity))
        except _TRANSPORT_ERRORS as e:
            raise SinkError(f"Could not set activity: {e}") from e

    def clear(self) -> None:
        """Clear the activity."""
        rpc = self._require_connection()
        try:
            rpc.clear()
        except _TRANSPORT_ERRORS as e:
            raise SinkError(f"Could not clear activity: {e}") from e

    def close(self) -> None:
        """Close the IPC connection, ignoring errors of a dead pipe."""
        if self._rpc is None:
            return
        try:
            self._rpc.close()
        except _TRANSPORT_ERRORS as e:
            logger.debug("Ignoring error while closing Discord connection: %s", e)
        finally:
            self._rpc = None

    def _require_connection(self) -> Presence:
        if self._rpc is None:
            raise SinkError("Not connected to Discord")
        return self._rpc


def _close_loop(loop: asyncio.AbstractEventLoop) -> None:
    if not loop.is_closed():
        loop.close()


def _discard(rpc: Presence) -> None:
    """Release the socket and event loop of a client that failed to connect."""
    writer = getattr(rpc, "sock_writer", None)
    if writer is not None:
        writer.close()
    _close_loop(rpc.loop)
