"""Decide whether a new snapshot warrants a presence update."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from musicrpc.models import MediaSnapshot, TrackedState

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "unknown artist"
UNKNOWN_ALBUM = "unknown album"
UNKNOWN_TITLE = "unknown title"


class ChangeReason(StrEnum):
    """Why a snapshot was or was not publish-worthy."""

    INVALID = "invalid"
    UNCHANGED = "unchanged"
    METADATA = "metadata"
    REPLAY = "replay"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True, slots=True)
class ChangeDecision:
    """Outcome of a change check."""

    publish: bool
    reason: ChangeReason


def is_usable(snapshot: MediaSnapshot) -> bool:
    """Check that a snapshot has enough metadata to be shown.

    Players report placeholder metadata between tracks; such snapshots are
    skipped rather than published or cleared.
    """
    all_unknown = (
        snapshot.artist.lower() == UNKNOWN_ARTIST
        and snapshot.album.lower() == UNKNOWN_ALBUM
        and snapshot.title.lower() == UNKNOWN_TITLE
    )
    return not all_unknown and bool(snapshot.artist) and bool(snapshot.title)


def should_publish(
    state: TrackedState, snapshot: MediaSnapshot, interrupted: bool
) -> ChangeDecision:
    """Compare a snapshot with what was last published.

    Args:
        state: Session state.
        snapshot: Fresh snapshot.
        interrupted: The previous cycle skipped publishing.

    Returns:
        The decision; never mutates ``state``.
    """
    if not is_usable(snapshot):
        return ChangeDecision(False, ChangeReason.INVALID)

    metadata_changed = (
        snapshot.title != state.title
        or snapshot.album != state.album
        or snapshot.artist != state.artist
        or snapshot.album_artist != state.album_artist
        or snapshot.is_playing != state.is_playing
    )
    if metadata_changed:
        return ChangeDecision(True, ChangeReason.METADATA)
    # Same track starting over: seek to start or repeat-one
    if snapshot.position < state.position:
        return ChangeDecision(True, ChangeReason.REPLAY)
    if interrupted:
        return ChangeDecision(True, ChangeReason.INTERRUPTED)
    return ChangeDecision(False, ChangeReason.UNCHANGED)


def observe(state: TrackedState, snapshot: MediaSnapshot) -> ChangeDecision:
    """Check a polled snapshot and remember its position.

    The position is stored for every usable snapshot, published or not, so
    replays are detected between consecutive polls.
    """
    decision = should_publish(state, snapshot, state.interrupted)
    logger.debug(
        "Change check %s (position %d -> %d): %s",
        snapshot.song_name,
        state.position,
        snapshot.position,
        decision.reason,
    )
    if decision.reason is not ChangeReason.INVALID:
        state.position = snapshot.position
    return decision
