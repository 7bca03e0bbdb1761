"""Runtime settings for the review service."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
