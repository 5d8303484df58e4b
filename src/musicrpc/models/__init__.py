"""Data models for media sources, snapshots and session state."""

from musicrpc.models.candidate import PlaybackPriority, SourceCandidate
from musicrpc.models.snapshot import MediaSnapshot
from musicrpc.models.tracked import TrackedState

__all__ = [
    "MediaSnapshot",
    "PlaybackPriority",
    "SourceCandidate",
    "TrackedState",
]
