"""Configuration package for Storybook"""

from .settings import Settings, get_settings
from .limits import (
    LEGACY_PLACEHOLDER_MIN_LENGTH,
    FIRESTORE_IN_QUERY_LIMIT,
    RESOLVE_BATCH_MAX_TEXTS,
    RESOLVE_TEXT_MAX_LENGTH,
)

__all__ = [
    "Settings",
    "get_settings",
    "LEGACY_PLACEHOLDER_MIN_LENGTH",
    "FIRESTORE_IN_QUERY_LIMIT",
    "RESOLVE_BATCH_MAX_TEXTS",
    "RESOLVE_TEXT_MAX_LENGTH",
]
