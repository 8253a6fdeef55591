"""Translation cache package.

Provides the two-tier translation cache, its local persistence, remote warming and
in-flight request tracking.
"""

from __future__ import annotations

from core.cache.inflight_manager import InFlightManager
from core.cache.remote_loader import RemoteCacheLoader
from core.cache.storage import CacheStorageError, LocalCacheStorage
from core.cache.store import TranslationCacheStore

__all__: list[str] = [
    "CacheStorageError",
    "InFlightManager",
    "LocalCacheStorage",
    "RemoteCacheLoader",
    "TranslationCacheStore",
]
