"""Two-tier translation cache.

An in-memory map of ``target language -> normalized original -> entry`` that mirrors itself
to the local persistent store after every write. Entries expire after a TTL and each language
bucket is bounded by a capacity enforced with frequency-biased eviction.
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING, ClassVar

from core.cache.storage import CacheStorageError
from models.cache_models import CacheBlob, CacheEntry, CacheStatistics
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable

    from core.cache.storage import LocalCacheStorage

__all__: list[str] = ["TranslationCacheStore"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TranslationCacheStore:
    """In-memory translation cache mirrored to a local persistent store.

    Lookups trim and NFC-normalize the original text. Expired entries are removed lazily on
    read. When a new key would land in a full language bucket, the entries with the lowest
    hit counts (``EVICTION_RATIO`` of the bucket, oldest first on ties) are evicted first.

    Persistence is best-effort: storage errors are logged and the in-memory cache stays
    authoritative for the session.

    Attributes:
        DEFAULT_TTL_SEC (ClassVar[float]): Entry lifetime, 24 hours.
        DEFAULT_CAPACITY (ClassVar[int]): Maximum entries per language bucket.
        EVICTION_RATIO (ClassVar[float]): Share of a full bucket evicted at once.
    """

    DEFAULT_TTL_SEC: ClassVar[float] = 24 * 60 * 60
    DEFAULT_CAPACITY: ClassVar[int] = 1000
    EVICTION_RATIO: ClassVar[float] = 0.2

    def __init__(
        self,
        storage: LocalCacheStorage | None = None,
        *,
        ttl: float | None = None,
        capacity: int | None = None,
        eviction_ratio: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache store.

        Args:
            storage (LocalCacheStorage | None): Local persistent store. None keeps the cache in memory only.
            ttl (float | None): Entry lifetime in seconds.
            capacity (int | None): Maximum entries per language bucket.
            eviction_ratio (float | None): Share of a full bucket evicted before inserting.
            clock (Callable[[], float]): Time source returning epoch seconds.
        """
        self._storage: LocalCacheStorage | None = storage
        self._ttl: float = self.DEFAULT_TTL_SEC if ttl is None else ttl
        self._capacity: int = self.DEFAULT_CAPACITY if capacity is None else capacity
        self._eviction_ratio: float = self.EVICTION_RATIO if eviction_ratio is None else eviction_ratio
        self._clock: Callable[[], float] = clock
        self._buckets: dict[str, dict[str, CacheEntry]] = {}
        self._last_fetch: dict[str, float] = {}
        self._hits: int = 0
        self._misses: int = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp > self._ttl

    def get(self, original: str, target_language: str, *, count_miss: bool = True) -> str | None:
        """Look up a translation.

        Args:
            original (str): Source text, trimmed and normalized before lookup.
            target_language (str): Target language code.
            count_miss (bool): If False, a miss does not increment the miss counter.
                Used when re-checking keys whose miss was already counted.

        Returns:
            str | None: The translated text, or None on a miss or an expired entry.
        """
        key: str = StringUtils.normalize_text(original)
        bucket: dict[str, CacheEntry] | None = self._buckets.get(target_language)
        entry: CacheEntry | None = bucket.get(key) if bucket else None

        if entry is not None and self._is_expired(entry):
            logger.debug("Cache entry expired: %s [%s]", LoggerUtils.preview(key), target_language)
            del bucket[key]  # type: ignore[index]
            entry = None

        if entry is None:
            if count_miss:
                self._misses += 1
            return None

        entry.hit_count += 1
        self._hits += 1
        return entry.translated

    def contains(self, original: str, target_language: str) -> bool:
        """Check for a live entry without touching any counter."""
        entry: CacheEntry | None = self._buckets.get(target_language, {}).get(StringUtils.normalize_text(original))
        return entry is not None and not self._is_expired(entry)

    def put(self, original: str, translated: str, target_language: str) -> bool:
        """Store a translation and persist the whole cache.

        Overwriting an existing key refreshes its text and timestamp but keeps its hit count.

        Args:
            original (str): Source text.
            translated (str): Translated text. Empty values are rejected.
            target_language (str): Target language code.

        Returns:
            bool: True if the entry was stored.
        """
        if not self._insert(original, translated, target_language):
            return False
        self._persist()
        return True

    def merge(self, target_language: str, pairs: Iterable[tuple[str, str]]) -> int:
        """Add entries that are not present yet, then persist once.

        Existing local entries are never overwritten.

        Args:
            target_language (str): Target language code of every pair.
            pairs (Iterable[tuple[str, str]]): (original, translated) pairs.

        Returns:
            int: Number of entries added.
        """
        added: int = 0
        for original, translated in pairs:
            if self.contains(original, target_language):
                continue
            if self._insert(original, translated, target_language):
                added += 1
        if added:
            self._persist()
        logger.debug("Merged %d entries into [%s]", added, target_language)
        return added

    def _insert(self, original: str, translated: str, target_language: str) -> bool:
        key: str = StringUtils.normalize_text(original)
        if not key or not isinstance(translated, str) or not translated.strip():
            logger.debug("Rejected cache write for key: %s [%s]", LoggerUtils.preview(key), target_language)
            return False

        bucket: dict[str, CacheEntry] = self._buckets.setdefault(target_language, {})
        now: float = self._clock()
        existing: CacheEntry | None = bucket.get(key)
        if existing is not None:
            existing.translated = translated
            existing.timestamp = now
            return True

        if len(bucket) >= self._capacity:
            self._evict(bucket, target_language)
        bucket[key] = CacheEntry(original=key, translated=translated, target_language=target_language, timestamp=now)
        return True

    def _evict(self, bucket: dict[str, CacheEntry], target_language: str) -> None:
        """Drop the least-hit share of a full bucket.

        ``sorted`` is stable and the bucket keeps insertion order, so older entries go first on ties.
        """
        count: int = max(1, math.floor(len(bucket) * self._eviction_ratio))
        victims: list[str] = [key for key, _ in sorted(bucket.items(), key=lambda item: item[1].hit_count)[:count]]
        for key in victims:
            del bucket[key]
        logger.info("Evicted %d low-hit entries from [%s]", len(victims), target_language)

    def clear(self) -> None:
        """Empty both tiers and reset every counter."""
        self._buckets.clear()
        self._last_fetch.clear()
        self._hits = 0
        self._misses = 0
        if self._storage is None:
            return
        try:
            self._storage.clear()
        except CacheStorageError as err:
            logger.warning("Failed to clear local cache store: %s", err)

    def stats(self) -> CacheStatistics:
        """Compute statistics from the running counters."""
        lookups: int = self._hits + self._misses
        sizes: dict[str, int] = {lang: len(bucket) for lang, bucket in self._buckets.items()}
        return CacheStatistics(
            size=sum(sizes.values()),
            hit_rate=self._hits / lookups if lookups else 0.0,
            last_fetch_per_language=dict(self._last_fetch),
            hits=self._hits,
            misses=self._misses,
            size_per_language=sizes,
        )

    def record_fetch(self, target_language: str) -> None:
        """Remember when a remote warm last completed for a language."""
        self._last_fetch[target_language] = self._clock()

    def last_fetch(self, target_language: str) -> float | None:
        return self._last_fetch.get(target_language)

    def entries(self, target_language: str) -> list[CacheEntry]:
        """Return the live entries of one language bucket, in insertion order."""
        return [entry for entry in self._buckets.get(target_language, {}).values() if not self._is_expired(entry)]

    def load(self) -> int:
        """Populate the memory tier from the local persistent store, skipping expired entries.

        Returns:
            int: Number of entries loaded.
        """
        if self._storage is None:
            return 0

        try:
            payload: str | None = self._storage.load()
        except CacheStorageError as err:
            logger.warning("Local cache store unavailable, continuing in memory only: %s", err)
            return 0
        if not payload:
            return 0

        try:
            blob: CacheBlob = CacheBlob.from_json(payload)
        except (ValueError, KeyError, TypeError) as err:
            logger.warning("Discarding unreadable local cache blob: %s", err)
            return 0
        if blob.version != self._storage.version:
            logger.info("Discarding local cache blob with version '%s'", blob.version)
            return 0

        loaded: int = 0
        for entry in blob.entries:
            if self._is_expired(entry):
                continue
            bucket: dict[str, CacheEntry] = self._buckets.setdefault(entry.target_language, {})
            bucket[StringUtils.normalize_text(entry.original)] = entry
            loaded += 1
        logger.info("Loaded %d cache entries from the local store", loaded)
        return loaded

    def _persist(self) -> None:
        if self._storage is None:
            return

        blob = CacheBlob(
            version=self._storage.version,
            entries=[entry for bucket in self._buckets.values() for entry in bucket.values()],
        )
        try:
            self._storage.save(blob.to_json(ensure_ascii=False))
        except CacheStorageError as err:
            logger.warning("Failed to persist translation cache: %s", err)
