"""Media source backends.

Provides playback state from the local machine:
1. MPRIS over D-Bus - Linux
2. media-control CLI - macOS
"""

import sys

from musicrpc.api.sources.base import (
    PROXY_SOURCE_IDS,
    MediaSourceProvider,
    ProviderUnavailableError,
    SnapshotUnreadableError,
)


def create_provider(platform: str = sys.platform) -> MediaSourceProvider:
    """Create the media source backend for the running platform.

    Backends are imported lazily because each one needs platform libraries.

    Args:
        platform: Value of sys.platform.

    Returns:
        Provider instance.

    Raises:
        ProviderUnavailableError: On platforms without a backend.
    """
    if platform.startswith("linux"):
        from musicrpc.api.sources.mpris import MprisSourceProvider

        return MprisSourceProvider()
    if platform == "darwin":
        from musicrpc.api.sources.media_control import MediaControlSourceProvider

        return MediaControlSourceProvider()
    raise ProviderUnavailableError(f"No media source backend for platform {platform!r}")


__all__ = [
    "PROXY_SOURCE_IDS",
    "MediaSourceProvider",
    "ProviderUnavailableError",
    "SnapshotUnreadableError",
    "create_provider",
]
