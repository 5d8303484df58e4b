"""macOS media source backend using the ``media-control`` CLI.

macOS only exposes the system-wide "now playing" item, so this backend
reports at most one candidate.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from typing import Any

from musicrpc.api.sources.base import (
    MediaSourceProvider,
    ProviderUnavailableError,
    SnapshotUnreadableError,
)
from musicrpc.api.sources.metadata import app_name_from_bundle_id, snapshot_from_media_control
from musicrpc.models import MediaSnapshot, PlaybackPriority, SourceCandidate

logger = logging.getLogger(__name__)

MEDIA_CONTROL_BINARY = "media-control"

# Seconds to wait for media-control before giving up
COMMAND_TIMEOUT = 5


class MediaControlSourceProvider(MediaSourceProvider):
    """Read the macOS now-playing item through ``media-control get``."""

    def __init__(self, binary: str | None = None) -> None:
        """Initialize the provider.

        Args:
            binary: Path to media-control, looked up in PATH if omitted.
        """
        self._binary = binary or shutil.which(MEDIA_CONTROL_BINARY) or MEDIA_CONTROL_BINARY

    @property
    def name(self) -> str:
        """Return backend name."""
        return "media-control"

    def list_candidates(self) -> list[SourceCandidate]:
        """Return the now-playing app as the only candidate."""
        data = self._read()
        if not data or not data.get("bundleIdentifier"):
            return []

        bundle_id = str(data["bundleIdentifier"])
        has_metadata = bool(data.get("title")) and bool(data.get("artist"))
        return [
            SourceCandidate(
                id=bundle_id,
                display_name=app_name_from_bundle_id(bundle_id),
                playback_priority=(
                    PlaybackPriority.PLAYING if data.get("playing") else PlaybackPriority.PAUSED
                ),
                metadata_quality=0 if has_metadata else 1,
            )
        ]

    def snapshot(self, source_id: str) -> MediaSnapshot:
        """Read the now-playing item.

        The returned snapshot may belong to another app than ``source_id``
        when the user switched players; the caller detects that.
        """
        try:
            data = self._read()
        except ProviderUnavailableError as e:
            raise SnapshotUnreadableError(str(e)) from e
        if not data:
            raise SnapshotUnreadableError(f"{source_id} is no longer playing anything")
        return snapshot_from_media_control(data)

    def _read(self) -> dict[str, Any] | None:
        """Run ``media-control get`` and parse its JSON output.

        Returns:
            Parsed object, or None when nothing is playing.

        Raises:
            ProviderUnavailableError: If the command is missing or fails.
        """
        try:
            result = subprocess.run(
                [self._binary, "get"],
                capture_output=True,
                text=True,
                timeout=COMMAND_TIMEOUT,
                check=False,
            )
        except FileNotFoundError as e:
            raise ProviderUnavailableError(
                "media-control is not installed (brew install media-control)"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ProviderUnavailableError("media-control timed out") from e
        except OSError as e:
            raise ProviderUnavailableError(f"media-control failed: {e}") from e

        if result.returncode != 0:
            raise ProviderUnavailableError(
                f"media-control exited with {result.returncode}: {result.stderr.strip()}"
            )

        output = result.stdout.strip()
        if not output or output == "null":
            return None
        try:
            data = json.loads(output)
        except ValueError as e:
            raise ProviderUnavailableError(f"Unexpected media-control output: {e}") from e
        return data if isinstance(data, dict) else None
