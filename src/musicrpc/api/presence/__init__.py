"""Presence sink interface and Discord payload mapping.

The pypresence-backed DiscordSink lives in ``musicrpc.api.presence.discord``
and is imported explicitly by the entry point.
"""

from musicrpc.api.presence.payload import (
    ActivityType,
    Button,
    ButtonKind,
    PresenceOptions,
    PresencePayload,
    RpcName,
    SmallImageMode,
    SourceIdentity,
    StatusDisplayType,
    build_buttons,
    build_payload,
    youtube_search_url,
)
from musicrpc.api.presence.sink import PresenceSink, SinkError

__all__ = [
    "ActivityType",
    "Button",
    "ButtonKind",
    "PresenceOptions",
    "PresencePayload",
    "PresenceSink",
    "RpcName",
    "SinkError",
    "SmallImageMode",
    "SourceIdentity",
    "StatusDisplayType",
    "build_buttons",
    "build_payload",
    "youtube_search_url",
]
