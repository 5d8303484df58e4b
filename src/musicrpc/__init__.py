"""Discord Rich Presence for desktop media players."""

__version__ = "0.1.0"
