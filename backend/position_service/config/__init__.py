"""Configuration package for the position service."""

from .settings import DEFAULT_DATABASE_URL, DEFAULT_MAX_UPLOAD_BYTES, PositionSettings, get_settings

__all__ = ["DEFAULT_DATABASE_URL", "DEFAULT_MAX_UPLOAD_BYTES", "PositionSettings", "get_settings"]
