"""Presence sink interface."""

from abc import ABC, abstractmethod
from typing import Any


class SinkError(Exception):
    """The presence sink (Discord) is unreachable or rejected a command."""


class PresenceSink(ABC):
    """Abstract base class for presence transports.

    Every method raises SinkError on failure.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the connection for the first time."""

    @abstractmethod
    def reconnect(self) -> None:
        """Drop any stale connection and open a fresh one."""

    @abstractmethod
    def set_activity(self, activity: dict[str, Any]) -> None:
        """Show an activity.

        Args:
            activity: Activity object as built by PresencePayload.to_activity().
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove the shown activity."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection. Must not raise."""
