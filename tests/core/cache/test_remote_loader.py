"""Tests for RemoteCacheLoader."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from core.cache.remote_loader import RemoteCacheLoader
from core.cache.store import TranslationCacheStore
from tests.doubles import StubRemoteStore

if TYPE_CHECKING:
    from models.cache_models import RemoteTranslationRow


class FakeClock:
    def __init__(self) -> None:
        self.now: float = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def remote() -> StubRemoteStore:
    return StubRemoteStore({"fr": [("Welcome", "Bienvenue"), ("Sign Up", "S'inscrire")]})


@pytest.mark.asyncio
async def test_warm_merges_remote_rows(remote: StubRemoteStore, clock: FakeClock) -> None:
    cache = TranslationCacheStore()
    loader = RemoteCacheLoader(cache, remote, clock=clock)

    task = loader.warm("fr")
    assert task is not None

    assert await task == 2
    assert cache.get("Sign Up", "fr") == "S'inscrire"
    assert cache.last_fetch("fr") is not None
    assert remote.list_calls == [("fr", 500)]


@pytest.mark.asyncio
async def test_warm_never_overwrites_local_entries(remote: StubRemoteStore, clock: FakeClock) -> None:
    cache = TranslationCacheStore()
    cache.put("Welcome", "Bienvenue à vous", "fr")
    loader = RemoteCacheLoader(cache, remote, clock=clock)

    task = loader.warm("fr")
    assert task is not None

    assert await task == 1
    assert cache.get("Welcome", "fr") == "Bienvenue à vous"


@pytest.mark.asyncio
async def test_concurrent_warms_share_one_fetch(remote: StubRemoteStore, clock: FakeClock) -> None:
    remote.gate = asyncio.Event()
    loader = RemoteCacheLoader(TranslationCacheStore(), remote, clock=clock)

    first = loader.warm("fr")
    second = loader.warm("fr")
    remote.gate.set()

    assert first is second
    assert first is not None
    await first
    assert len(remote.list_calls) == 1


@pytest.mark.asyncio
async def test_warm_is_dropped_during_cooldown(remote: StubRemoteStore, clock: FakeClock) -> None:
    loader = RemoteCacheLoader(TranslationCacheStore(), remote, cooldown=30.0, clock=clock)
    task = loader.warm("fr")
    assert task is not None
    await task

    clock.now += 29.0
    assert loader.warm("fr") is None
    assert loader.is_cooling_down("fr") is True

    clock.now += 2.0
    again = loader.warm("fr")
    assert again is not None
    await again
    assert len(remote.list_calls) == 2


@pytest.mark.asyncio
async def test_cooldown_is_per_language(remote: StubRemoteStore, clock: FakeClock) -> None:
    loader = RemoteCacheLoader(TranslationCacheStore(), remote, clock=clock)
    task = loader.warm("fr")
    assert task is not None
    await task

    other = loader.warm("de")

    assert other is not None
    assert await other == 0


@pytest.mark.asyncio
async def test_failed_warm_leaves_cache_untouched_and_cools_down(remote: StubRemoteStore, clock: FakeClock) -> None:
    remote.fail = True
    cache = TranslationCacheStore()
    loader = RemoteCacheLoader(cache, remote, clock=clock)

    task = loader.warm("fr")
    assert task is not None

    assert await task == 0
    assert cache.stats().size == 0
    assert loader.warm("fr") is None


@pytest.mark.asyncio
async def test_refresh_ignores_cooldown(remote: StubRemoteStore, clock: FakeClock) -> None:
    loader = RemoteCacheLoader(TranslationCacheStore(), remote, clock=clock)
    await loader.refresh("fr")

    await loader.refresh("fr")

    assert len(remote.list_calls) == 2


@pytest.mark.asyncio
async def test_close_cancels_running_warm(remote: StubRemoteStore, clock: FakeClock) -> None:
    remote.gate = asyncio.Event()
    loader = RemoteCacheLoader(TranslationCacheStore(), remote, clock=clock)
    task = loader.warm("fr")
    assert task is not None
    await asyncio.sleep(0)

    await loader.close()

    assert task.cancelled() is True


class OversharingRemoteStore(StubRemoteStore):
    """Returns every stored row, whatever limit was asked for."""

    async def list_translations(
        self, target_language: str, limit: int, *, newest_first: bool = True
    ) -> list[RemoteTranslationRow]:
        _ = limit
        return await super().list_translations(
            target_language, len(self.rows.get(target_language, [])), newest_first=newest_first
        )


@pytest.mark.asyncio
async def test_refresh_merges_at_most_the_limit(clock: FakeClock) -> None:
    remote = OversharingRemoteStore({"fr": [(f"Text {i}", f"Texte {i}") for i in range(5)]})
    cache = TranslationCacheStore()
    loader = RemoteCacheLoader(cache, remote, limit=3, clock=clock)

    assert await loader.refresh("fr") == 3
    assert cache.stats().size == 3
    assert cache.contains("Text 3", "fr") is False
