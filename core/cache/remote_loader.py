"""Rate-limited warm-up of the translation cache from the remote store."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, ClassVar

from core.remote.store import RemoteStoreError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.cache.store import TranslationCacheStore
    from core.remote.store import RemoteTranslationStore
    from models.cache_models import RemoteTranslationRow

__all__: list[str] = ["RemoteCacheLoader"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class RemoteCacheLoader:
    """Warms the cache store with the newest remote translations of a language.

    A warm is dropped, neither queued nor retried, when the previous warm of the same language
    completed less than ``COOLDOWN_SEC`` ago. Callers asking while a warm is running share it.
    Failures are logged only: warming is an optimization, never a correctness path.

    Attributes:
        COOLDOWN_SEC (ClassVar[float]): Minimum time between two completed warms of one language.
        WARM_LIMIT (ClassVar[int]): Maximum rows fetched per warm.
    """

    COOLDOWN_SEC: ClassVar[float] = 30.0
    WARM_LIMIT: ClassVar[int] = 500

    def __init__(
        self,
        cache_store: TranslationCacheStore,
        remote_store: RemoteTranslationStore,
        *,
        cooldown: float | None = None,
        limit: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache_store: TranslationCacheStore = cache_store
        self._remote_store: RemoteTranslationStore = remote_store
        self._cooldown: float = self.COOLDOWN_SEC if cooldown is None else cooldown
        self._limit: int = self.WARM_LIMIT if limit is None else limit
        self._clock: Callable[[], float] = clock
        self._completed_at: dict[str, float] = {}
        self._tasks: dict[str, asyncio.Task[int]] = {}

    def is_cooling_down(self, target_language: str) -> bool:
        completed_at: float | None = self._completed_at.get(target_language)
        return completed_at is not None and self._clock() - completed_at < self._cooldown

    def warm(self, target_language: str) -> asyncio.Task[int] | None:
        """Start a warm in the background.

        Args:
            target_language (str): Target language code.

        Returns:
            asyncio.Task[int] | None: The running warm (new or already in progress), or None if
            the request was dropped by the cooldown. The task resolves to the number of entries added.
        """
        running: asyncio.Task[int] | None = self._tasks.get(target_language)
        if running is not None and not running.done():
            return running

        if self.is_cooling_down(target_language):
            logger.debug("Cache warm for [%s] dropped (cooldown)", target_language)
            return None

        task: asyncio.Task[int] = asyncio.create_task(self.refresh(target_language), name=f"warm-{target_language}")
        self._tasks[target_language] = task
        task.add_done_callback(lambda done: self._forget(target_language, done))
        return task

    def _forget(self, target_language: str, task: asyncio.Task[int]) -> None:
        if self._tasks.get(target_language) is task:
            del self._tasks[target_language]

    async def refresh(self, target_language: str) -> int:
        """Fetch and merge remote translations now, ignoring the cooldown.

        Returns:
            int: Number of entries added to the cache store.
        """
        logger.debug("Warming cache for [%s]", target_language)
        try:
            rows: list[RemoteTranslationRow] = await self._remote_store.list_translations(
                target_language, self._limit, newest_first=True
            )
        except RemoteStoreError as err:
            logger.warning("Cache warm for [%s] failed: %s", target_language, err)
            return 0
        except Exception as err:  # noqa: BLE001
            logger.error("Unexpected error warming cache for [%s]: %s", target_language, err)
            return 0
        finally:
            self._completed_at[target_language] = self._clock()

        fetched: int = len(rows)
        rows = rows[: self._limit]
        added: int = self._cache_store.merge(target_language, ((row.original, row.translated) for row in rows))
        self._cache_store.record_fetch(target_language)
        logger.info("Warmed [%s] with %d new entries (%d fetched)", target_language, added, fetched)
        return added

    async def close(self) -> None:
        """Cancel running warms and wait for them to finish."""
        tasks: list[asyncio.Task[int]] = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
