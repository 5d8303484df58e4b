"""Presence publisher: sink connection state machine and activity updates.

Two sink identities exist, one for audio players ("Listening to") and one for
video players ("Watching"). Only one is active at a time.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from musicrpc.api.presence.payload import (
    PresenceOptions,
    PresencePayload,
    SourceIdentity,
    build_payload,
)
from musicrpc.api.presence.sink import PresenceSink, SinkError
from musicrpc.core.notices import EdgeNotice

if TYPE_CHECKING:
    from musicrpc.models import MediaSnapshot, TrackedState

logger = logging.getLogger(__name__)


class PublishError(Exception):
    """An activity could not be sent; the sink connection was torn down."""


class SinkState(Enum):
    """Connection state of the active sink."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ConnectOutcome(Enum):
    """Result of ensure_connected()."""

    CONNECTED = "connected"
    RECONNECTED = "reconnected"
    FAILED = "failed"


class PresencePublisher:
    """Own the sink connections and publish activities.

    Example:
        publisher = PresencePublisher(DiscordSink(AUDIO_CLIENT_ID), DiscordSink(VIDEO_CLIENT_ID))
        if publisher.ensure_connected(state, is_video=False) is not ConnectOutcome.FAILED:
            publisher.publish(state, snapshot, artwork_url, identity)
    """

    def __init__(
        self,
        audio_sink: PresenceSink,
        video_sink: PresenceSink,
        options: PresenceOptions | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize disconnected.

        Args:
            audio_sink: Sink of the "Listening to" identity.
            video_sink: Sink of the "Watching" identity.
            options: Payload preferences.
            clock: Time source, for tests.
        """
        self._sinks = {False: audio_sink, True: video_sink}
        self._options = options or PresenceOptions()
        self._clock = clock

        self._is_video = False
        self._state = SinkState.DISCONNECTED
        # Identities that connected at least once use reconnect() afterwards
        self._entered: set[bool] = set()
        self._connect_notice = EdgeNotice(logger)

    @property
    def state(self) -> SinkState:
        """Return the connection state of the active sink."""
        return self._state

    @property
    def is_video(self) -> bool:
        """Return True if the video identity is active."""
        return self._is_video

    @property
    def options(self) -> PresenceOptions:
        """Return the payload preferences."""
        return self._options

    @property
    def sink(self) -> PresenceSink:
        """Return the active sink."""
        return self._sinks[self._is_video]

    def ensure_connected(self, state: TrackedState, is_video: bool) -> ConnectOutcome:
        """Make sure the sink of the requested identity is connected.

        Switching identity clears and closes the previous sink first.

        Args:
            state: Session state (activity_set may be reset).
            is_video: Identity to use.

        Returns:
            CONNECTED if connected (or already was), RECONNECTED after a
            re-entry, FAILED if Discord is unreachable.
        """
        if is_video != self._is_video:
            self.clear(state)
            self._teardown()
            self._is_video = is_video
            logger.debug("Using %s player presence", "video" if is_video else "audio")

        if self._state is SinkState.CONNECTED:
            return ConnectOutcome.CONNECTED

        first_time = is_video not in self._entered
        try:
            if first_time:
                self.sink.connect()
            else:
                self.sink.reconnect()
        except SinkError as e:
            logger.debug("Sink connection failed: %s", e)
            self._connect_notice.trigger(
                "Could not %s to Discord. Waiting for Discord to start...",
                "connect" if first_time else "reconnect",
            )
            return ConnectOutcome.FAILED

        self._state = SinkState.CONNECTED
        self._entered.add(is_video)
        # A fresh connection shows nothing until the next publish
        state.activity_set = False

        if first_time:
            logger.info("Connected to Discord.")
            self._connect_notice.reset()
            return ConnectOutcome.CONNECTED

        self._connect_notice.clear("Reconnected to Discord.")
        return ConnectOutcome.RECONNECTED

    def publish(
        self,
        state: TrackedState,
        snapshot: MediaSnapshot,
        artwork_url: str,
        identity: SourceIdentity,
    ) -> PresencePayload:
        """Send the activity for a snapshot.

        Args:
            state: Session state, activity_set is updated.
            snapshot: Snapshot to show.
            artwork_url: Resolved artwork.
            identity: Presented player.

        Returns:
            The payload that was sent.

        Raises:
            PublishError: If the sink failed; the connection is closed and
                must be re-established.
        """
        payload = build_payload(snapshot, artwork_url, identity, self._options, int(self._clock()))

        if self._state is not SinkState.CONNECTED:
            state.activity_set = False
            raise PublishError("Not connected to Discord")

        try:
            self.sink.set_activity(payload.to_activity())
        except SinkError as e:
            logger.warning("Could not set activity: %s", e)
            state.activity_set = False
            self._teardown()
            raise PublishError(str(e)) from e

        state.activity_set = True
        logger.info("=> Set activity [%s]: %s", snapshot.status_text, snapshot.song_name)
        return payload

    def clear(self, state: TrackedState) -> bool:
        """Clear the shown activity, if any.

        Idempotent: nothing is sent when no activity is set.

        Returns:
            True if an activity was cleared.
        """
        if not state.activity_set:
            return False
        state.activity_set = False

        if self._state is SinkState.CONNECTED:
            try:
                self.sink.clear()
            except SinkError as e:
                logger.debug("Could not clear activity: %s", e)
                self._teardown()
        logger.debug("Activity cleared")
        return True

    def close(self) -> None:
        """Close every sink."""
        for sink in self._sinks.values():
            sink.close()
        self._state = SinkState.DISCONNECTED

    def _teardown(self) -> None:
        """Close and forget the active connection."""
        self.sink.close()
        self._state = SinkState.DISCONNECTED
