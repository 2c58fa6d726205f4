"""Core: config and application bootstrap.

Single place for settings and shared constants.
"""

from beatcrest.core.config import get_settings

__all__ = ["get_settings"]
