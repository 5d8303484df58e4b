"""Deterministic selection of the media source to track."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from musicrpc.api.sources.base import PROXY_SOURCE_IDS

if TYPE_CHECKING:
    from musicrpc.api.sources import MediaSourceProvider
    from musicrpc.models import SourceCandidate

logger = logging.getLogger(__name__)


def matches_pattern(name: str, pattern: str) -> bool:
    """Match a player name against an allowlist pattern.

    A pattern ending in ``*`` matches by prefix, any other pattern must be
    equal to the name.

    Args:
        name: Player id or display name.
        pattern: Allowlist entry.

    Returns:
        True on match.
    """
    if pattern.endswith("*"):
        return name.startswith(pattern[:-1])
    return name == pattern


def allowlist_rank(candidate: SourceCandidate, allowlist: Sequence[str]) -> int | None:
    """Return the index of the first pattern matching the candidate.

    Both the id and the display name are tried.

    Args:
        candidate: Candidate to rank.
        allowlist: Ordered patterns.

    Returns:
        Pattern index, or None if no pattern matches.
    """
    for index, pattern in enumerate(allowlist):
        if matches_pattern(candidate.id, pattern) or matches_pattern(
            candidate.display_name, pattern
        ):
            return index
    return None


def rank_candidates(
    candidates: Iterable[SourceCandidate], allowlist: Sequence[str]
) -> list[SourceCandidate]:
    """Return allowlisted candidates with their rank filled in.

    Proxy pseudo-sources and candidates matching no pattern are dropped.
    """
    ranked: list[SourceCandidate] = []
    for candidate in candidates:
        if candidate.id in PROXY_SOURCE_IDS:
            continue
        rank = allowlist_rank(candidate, allowlist)
        if rank is not None:
            ranked.append(replace(candidate, allowlist_rank=rank))
    return ranked


def select_source(
    candidates: Iterable[SourceCandidate], allowlist: Sequence[str]
) -> SourceCandidate | None:
    """Pick the allowlisted candidate to track.

    The winner is the minimum of (playback priority, allowlist rank,
    metadata quality, id), so playback status dominates allowlist order and
    ties always resolve the same way.

    Args:
        candidates: Discovered players.
        allowlist: Ordered patterns, must not be empty.

    Returns:
        The chosen candidate, or None if nothing matches.
    """
    return min(rank_candidates(candidates, allowlist), key=lambda c: c.sort_key, default=None)


def acquire_source(
    provider: MediaSourceProvider, allowlist: Sequence[str]
) -> SourceCandidate | None:
    """Find the source to track through a provider.

    Without an allowlist the provider's own notion of the active player is
    used.

    Raises:
        ProviderUnavailableError: If the provider cannot be reached.
    """
    if not allowlist:
        return provider.active_source()
    return select_source(provider.list_candidates(), allowlist)


def find_playing_alternative(
    candidates: Iterable[SourceCandidate],
    current_id: str,
    allowlist: Sequence[str],
) -> SourceCandidate | None:
    """Find another eligible player that is actively playing.

    Used while the tracked player is paused: the current player is kept
    unless another allowlisted player is playing with usable metadata.

    Args:
        candidates: Discovered players.
        current_id: Id of the tracked player.
        allowlist: Ordered patterns, empty for "any player".

    Returns:
        The best playing alternative, or None.
    """
    eligible = [
        c
        for c in candidates
        if c.id not in PROXY_SOURCE_IDS
        and c.id != current_id
        and c.is_playing
        and c.has_valid_metadata
    ]
    if allowlist:
        eligible = rank_candidates(eligible, allowlist)
    return min(eligible, key=lambda c: c.sort_key, default=None)
