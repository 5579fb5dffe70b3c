"""
Cached System Configuration

TTLCache is a single-value cache with an injected clock and an explicit
invalidate(). It is owned by whoever constructs it (normally one per app
in main.py), so nothing leaks between processes or tests through module
state.

GlobalPromptConfigService reads systemConfig/prompts through it.
"""

import logging
import time
from typing import Callable, Generic, Optional, TypeVar

from src.models.models import GlobalPromptConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Holds one value for `ttl_seconds` measured by `clock`."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: Optional[T] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[T]:
        """Cached value, or None when empty or expired."""
        if self._stored_at is None:
            return None
        if self._clock() - self._stored_at >= self.ttl_seconds:
            return None
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = None


class GlobalPromptConfigService:
    """
    Global prompt prefix configuration.

    Stored fields are merged over GlobalPromptConfig defaults. A store
    error returns defaults without caching them, so the next call retries.
    """

    def __init__(self, store, cache: TTLCache, document_path: str = "systemConfig/prompts"):
        self.store = store
        self.cache = cache
        self.document_path = document_path

    async def get_config(self) -> GlobalPromptConfig:
        cached = self.cache.get()
        if cached is not None:
            return cached

        try:
            data = await self.store.get_document_at(self.document_path)
        except Exception as e:
            logger.error(f"GlobalPromptConfig: error fetching {self.document_path}: {e}")
            return GlobalPromptConfig()

        config = GlobalPromptConfig.model_validate(data or {})
        self.cache.set(config)
        return config

    async def get_global_prefix(self) -> str:
        """Prefix for AI flows, or "" when disabled or unset."""
        config = await self.get_config()
        if config.enabled and config.global_prefix:
            return config.global_prefix
        return ""

    async def update_config(self, updates: dict, updated_by: Optional[str] = None) -> GlobalPromptConfig:
        """Write camelCase fields, then drop the cached copy."""
        data = dict(updates)
        if updated_by:
            data["updatedBy"] = updated_by
        await self.store.set_document_at(self.document_path, data, merge=True)
        self.clear_cache()
        return await self.get_config()

    def clear_cache(self) -> None:
        self.cache.invalidate()
