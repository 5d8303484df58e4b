"""Reconciliation loop keeping the Discord presence in sync with a player.

The outer loop acquires a player and a Discord connection; the inner loop
polls the player, decides whether anything changed and publishes. Both share
one polling interval and run on the calling thread.

Signals are emitted synchronously from that thread, so no Qt event loop is
required.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

from musicrpc.api.presence.payload import SourceIdentity
from musicrpc.api.sources.base import ProviderUnavailableError, SnapshotUnreadableError
from musicrpc.api.sources.metadata import sanitize_name
from musicrpc.core import changes
from musicrpc.core.notices import EdgeNotice
from musicrpc.core.publisher import ConnectOutcome, PublishError
from musicrpc.core.selector import acquire_source, find_playing_alternative, matches_pattern
from musicrpc.models import TrackedState

if TYPE_CHECKING:
    from musicrpc.api.album_art import ArtworkResolver
    from musicrpc.api.sources import MediaSourceProvider
    from musicrpc.core.config import Settings
    from musicrpc.core.publisher import PresencePublisher
    from musicrpc.models import MediaSnapshot, SourceCandidate

logger = logging.getLogger(__name__)


class PollResult(Enum):
    """What the inner loop should do after a poll."""

    CONTINUE = "continue"
    REACQUIRE = "reacquire"


@dataclass(frozen=True, slots=True)
class Session:
    """A tracked player and how it is presented."""

    candidate: SourceCandidate
    identity: SourceIdentity


class PresenceDaemon(QObject):
    """Poll a media player and mirror its state to Discord.

    Example:
        daemon = PresenceDaemon(create_provider(), publisher, resolver, settings)
        daemon.activity_published.connect(lambda payload: print(payload.details))
        daemon.run()  # blocks until stop() is called
    """

    # Emitted after a successful publish
    # Parameter: PresencePayload
    activity_published = Signal(object)

    # Emitted when a shown activity is cleared
    activity_cleared = Signal()

    # Emitted when a player is acquired
    # Parameter: Session
    source_acquired = Signal(object)

    def __init__(
        self,
        provider: MediaSourceProvider,
        publisher: PresencePublisher,
        resolver: ArtworkResolver,
        settings: Settings,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the daemon.

        Args:
            provider: Media source backend.
            publisher: Presence publisher owning the Discord connections.
            resolver: Artwork resolver.
            settings: Effective settings.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._provider = provider
        self._publisher = publisher
        self._resolver = resolver
        self._settings = settings

        self._state = TrackedState()
        self._stop_event = threading.Event()

        self._provider_notice = EdgeNotice(logger)
        self._missing_notice = EdgeNotice(logger)
        self._found_notice = EdgeNotice(logger)

    @property
    def state(self) -> TrackedState:
        """Return the session state."""
        return self._state

    @property
    def interval(self) -> int:
        """Return the polling interval in seconds."""
        return self._settings.interval

    def run(self) -> None:
        """Run the outer and inner loops until stop() is called."""
        logger.debug("Polling every %d seconds", self.interval)
        while not self._stop_event.is_set():
            session = self.acquire()
            if session is None:
                self._sleep()
                continue

            while not self._stop_event.is_set():
                result = self.poll(session)
                self._sleep()
                if result is PollResult.REACQUIRE:
                    break

        self._publisher.clear(self._state)

    def stop(self) -> None:
        """Interrupt the current sleep and leave the loops."""
        self._stop_event.set()

    def acquire(self) -> Session | None:
        """Select a player and connect the matching Discord identity.

        Returns:
            The session, or None if the cycle should be retried after a sleep.
        """
        allowlist = self._settings.allowlist
        try:
            candidate = acquire_source(self._provider, allowlist)
        except ProviderUnavailableError as e:
            self._provider_notice.trigger(
                "Could not connect to %s: %s", self._provider.name, e
            )
            return None
        self._provider_notice.clear("Connected to %s.", self._provider.name)

        if candidate is None:
            self._found_notice.reset()
            if allowlist:
                self._missing_notice.trigger(
                    "Could not find any active player from your allowlist. "
                    "Waiting for any player from your allowlist..."
                )
            else:
                self._missing_notice.trigger(
                    "Could not find any active player. Waiting for any player..."
                )
            self._state.interrupted = True
            self._clear()
            return None

        self._missing_notice.reset()
        self._found_notice.trigger("Found active player using %s.", self._provider.name)

        identity = self.identity_for(candidate)
        logger.debug(
            "Tracking %s (%s) as %s, video=%s",
            candidate.display_name,
            candidate.id,
            identity.asset_id,
            identity.is_video,
        )

        outcome = self._publisher.ensure_connected(self._state, identity.is_video)
        if outcome is ConnectOutcome.FAILED:
            return None
        if outcome is ConnectOutcome.RECONNECTED:
            self._state.interrupted = True

        session = Session(candidate, identity)
        self.source_acquired.emit(session)
        return session

    def poll(self, session: Session) -> PollResult:
        """Run one inner-loop cycle for the tracked player.

        Returns:
            CONTINUE to keep polling this player, REACQUIRE to go back to
            player selection.
        """
        try:
            snapshot = self._provider.snapshot(session.candidate.id)
        except SnapshotUnreadableError as e:
            logger.info("Could not get metadata from player: %s", e)
            self._clear()
            return PollResult.REACQUIRE

        # The macOS backend reports whatever app is now playing
        if snapshot.source_id and snapshot.source_id != session.candidate.id:
            if self.is_video_source(snapshot.source_id) != session.identity.is_video:
                logger.debug("Player category changed: %s", snapshot.source_id)
            else:
                logger.debug("Detected player change: %s", snapshot.source_id)
            self._clear()
            return PollResult.REACQUIRE

        if not snapshot.is_playing:
            if self._settings.only_when_playing:
                self._state.interrupted = True
                self._clear()
                return PollResult.CONTINUE
            if self._playing_alternative_exists(session.candidate.id):
                return PollResult.REACQUIRE

        decision = changes.observe(self._state, snapshot)
        if decision.reason is changes.ChangeReason.INVALID:
            logger.debug("Unknown metadata, skipping...")
            return PollResult.REACQUIRE
        if not decision.publish:
            logger.debug("The same metadata and status, skipping...")
            return PollResult.CONTINUE

        return self._publish(snapshot, session)

    def identity_for(self, candidate: SourceCandidate) -> SourceIdentity:
        """Return how a player is presented, applying forced overrides."""
        is_video = self.is_video_source(candidate.id) or self.is_video_source(
            candidate.display_name
        )
        name = self._settings.force_player_name or candidate.display_name
        asset_id = self._settings.force_player_id or sanitize_name(candidate.display_name)
        return SourceIdentity(name=name, asset_id=asset_id, is_video=is_video)

    def is_video_source(self, name: str) -> bool:
        """Check a player id or name against the video player list."""
        return any(matches_pattern(name, pattern) for pattern in self._settings.video_players)

    def _publish(self, snapshot: MediaSnapshot, session: Session) -> PollResult:
        """Resolve artwork and publish a publish-worthy snapshot."""
        artwork = self._resolver.resolve(
            snapshot.album_id,
            snapshot.album,
            snapshot.album_artist,
            art_url=snapshot.art_url,
            native_art_allowed=not self._settings.disable_mpris_art_url,
        )
        self._state.record(snapshot, artwork)

        try:
            payload = self._publisher.publish(self._state, snapshot, artwork, session.identity)
        except PublishError:
            logger.info("Could not set activity.")
            self._state.interrupted = True
            return PollResult.REACQUIRE

        self._state.interrupted = False
        self.activity_published.emit(payload)
        return PollResult.CONTINUE

    def _playing_alternative_exists(self, current_id: str) -> bool:
        """Probe for another eligible player that is playing."""
        try:
            candidates = self._provider.list_candidates()
        except ProviderUnavailableError as e:
            logger.debug("Could not probe other players: %s", e)
            return False
        alternative = find_playing_alternative(candidates, current_id, self._settings.allowlist)
        if alternative is not None:
            logger.debug("Switching to playing player %s", alternative.id)
            return True
        return False

    def _clear(self) -> None:
        if self._publisher.clear(self._state):
            self.activity_cleared.emit()

    def _sleep(self) -> None:
        self._stop_event.wait(self.interval)
