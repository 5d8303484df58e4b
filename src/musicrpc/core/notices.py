"""Edge-triggered console notices.

A daemon polling every few seconds would repeat "waiting for Discord" forever.
Each condition gets an EdgeNotice that logs once when the condition appears
and, optionally, once when it goes away.
"""

import logging
from enum import Enum


class NoticeState(Enum):
    """Whether the condition's message has been shown."""

    IDLE = "idle"
    NOTIFIED = "notified"


class EdgeNotice:
    """Log a message once per occurrence of a condition.

    Example:
        notice = EdgeNotice(logger)
        notice.trigger("Could not connect to Discord.")  # logged
        notice.trigger("Could not connect to Discord.")  # suppressed
        notice.clear("Reconnected to Discord.")          # logged
        notice.clear("Reconnected to Discord.")          # suppressed
    """

    def __init__(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        """Initialize in the IDLE state.

        Args:
            logger: Logger to write to.
            level: Log level of the messages.
        """
        self._logger = logger
        self._level = level
        self._state = NoticeState.IDLE

    @property
    def state(self) -> NoticeState:
        """Return the current state."""
        return self._state

    @property
    def notified(self) -> bool:
        """Return True while the condition's message stands."""
        return self._state is NoticeState.NOTIFIED

    def trigger(self, message: str, *args: object) -> bool:
        """Report that the condition holds.

        Args:
            message: %-style log message.
            *args: Message arguments.

        Returns:
            True if the message was logged by this call.
        """
        if self._state is NoticeState.NOTIFIED:
            return False
        self._logger.log(self._level, message, *args)
        self._state = NoticeState.NOTIFIED
        return True

    def clear(self, message: str | None = None, *args: object) -> bool:
        """Report that the condition is gone.

        Args:
            message: Recovery message, logged only if the condition had
                been notified.
            *args: Message arguments.

        Returns:
            True if the recovery message was logged.
        """
        was_notified = self._state is NoticeState.NOTIFIED
        self._state = NoticeState.IDLE
        if was_notified and message:
            self._logger.log(self._level, message, *args)
            return True
        return False

    def reset(self) -> None:
        """Forget the condition without logging."""
        self._state = NoticeState.IDLE
