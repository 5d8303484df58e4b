"""Core business logic layer.

This module contains the reconciliation logic that sits between the media
source backends and the Discord presence sink.

Classes:
    PresenceDaemon: Polling loop with Qt signals.
    PresencePublisher: Sink connection state machine.
    ConfigManager: QSettings wrapper for configuration.
    Settings: Effective configuration.
"""

from musicrpc.core.config import ConfigManager, Settings
from musicrpc.core.daemon import PollResult, PresenceDaemon, Session
from musicrpc.core.publisher import ConnectOutcome, PresencePublisher, PublishError

__all__ = [
    "ConfigManager",
    "ConnectOutcome",
    "PollResult",
    "PresenceDaemon",
    "PresencePublisher",
    "PublishError",
    "Session",
    "Settings",
]
