"""Tests for TranslationCacheStore.

Tests lookups, TTL expiry, per-language capacity and eviction, persistence and statistics.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from core.cache.storage import CacheStorageError, LocalCacheStorage
from core.cache.store import TranslationCacheStore

if TYPE_CHECKING:
    from pathlib import Path


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now: float = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> TranslationCacheStore:
    return TranslationCacheStore(clock=clock)


def test_get_returns_stored_translation(store: TranslationCacheStore) -> None:
    assert store.put("Welcome", "Bienvenue", "fr") is True

    assert store.get("Welcome", "fr") == "Bienvenue"
    assert store.get("Welcome", "de") is None


def test_keys_are_trimmed_and_nfc_normalized(store: TranslationCacheStore) -> None:
    store.put("  Cafe\u0301  ", "Caf\u00e9", "fr")

    assert store.get("Caf\u00e9", "fr") == "Caf\u00e9"


def test_put_rejects_empty_values(store: TranslationCacheStore) -> None:
    assert store.put("Hello", "   ", "fr") is False
    assert store.put("   ", "Bonjour", "fr") is False
    assert store.stats().size == 0


def test_overwrite_refreshes_text_and_keeps_hit_count(store: TranslationCacheStore) -> None:
    store.put("Hello", "Salut", "fr")
    store.get("Hello", "fr")
    store.get("Hello", "fr")

    store.put("Hello", "Bonjour", "fr")

    [entry] = store.entries("fr")
    assert entry.translated == "Bonjour"
    assert entry.hit_count == 2


def test_expired_entry_is_a_miss_and_removed(store: TranslationCacheStore, clock: FakeClock) -> None:
    store.put("Hello", "Bonjour", "fr")
    clock.advance(24 * 60 * 60 + 1)

    assert store.get("Hello", "fr") is None
    assert "Hello" not in store._buckets["fr"]  # noqa: SLF001
    assert store.stats().size == 0


def test_entry_just_inside_ttl_is_still_served(store: TranslationCacheStore, clock: FakeClock) -> None:
    store.put("Hello", "Bonjour", "fr")
    clock.advance(24 * 60 * 60 - 1)

    assert store.get("Hello", "fr") == "Bonjour"


def test_eviction_removes_lowest_hit_share(clock: FakeClock) -> None:
    store = TranslationCacheStore(capacity=10, eviction_ratio=0.2, clock=clock)
    for i in range(10):
        store.put(f"text {i}", f"texte {i}", "fr")
    for i in range(8):
        store.get(f"text {i}", "fr")

    store.put("text 10", "texte 10", "fr")

    assert store.stats().size_per_language["fr"] <= 10
    assert not store.contains("text 8", "fr")
    assert not store.contains("text 9", "fr")
    assert all(store.contains(f"text {i}", "fr") for i in range(8))
    assert store.contains("text 10", "fr")


def test_eviction_prefers_older_entries_on_equal_hits(clock: FakeClock) -> None:
    store = TranslationCacheStore(capacity=5, eviction_ratio=0.2, clock=clock)
    for i in range(5):
        store.put(f"text {i}", f"texte {i}", "fr")

    store.put("text 5", "texte 5", "fr")

    assert not store.contains("text 0", "fr")
    assert store.contains("text 1", "fr")


def test_capacity_is_per_language(clock: FakeClock) -> None:
    store = TranslationCacheStore(capacity=3, clock=clock)
    for i in range(3):
        store.put(f"text {i}", f"texte {i}", "fr")
        store.put(f"text {i}", f"Text {i}", "de")

    assert store.stats().size == 6


def test_bucket_never_exceeds_capacity(clock: FakeClock) -> None:
    store = TranslationCacheStore(capacity=4, eviction_ratio=0.2, clock=clock)
    for i in range(20):
        store.put(f"text {i}", f"texte {i}", "fr")
        assert len(store.entries("fr")) <= 4


def test_merge_skips_existing_entries(store: TranslationCacheStore) -> None:
    store.put("Hello", "Bonjour local", "fr")

    added = store.merge("fr", [("Hello", "Salut"), ("Bye", "Au revoir"), ("Empty", "")])

    assert added == 1
    assert store.get("Hello", "fr") == "Bonjour local"
    assert store.get("Bye", "fr") == "Au revoir"


def test_stats_tracks_hit_rate_and_fetch_times(store: TranslationCacheStore, clock: FakeClock) -> None:
    store.put("Hello", "Bonjour", "fr")
    store.get("Hello", "fr")
    store.get("Missing", "fr")
    store.get("Missing again", "fr", count_miss=False)
    store.record_fetch("fr")

    stats = store.stats()

    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate == pytest.approx(0.5)
    assert stats.last_fetch_per_language == {"fr": clock.now}


def test_clear_empties_everything(store: TranslationCacheStore) -> None:
    store.put("Hello", "Bonjour", "fr")
    store.get("Hello", "fr")

    store.clear()

    stats = store.stats()
    assert stats.size == 0
    assert stats.hits == 0


def test_persisted_entries_survive_a_new_store(tmp_path: Path, clock: FakeClock) -> None:
    db_path: Path = tmp_path / "cache.db"
    first = TranslationCacheStore(LocalCacheStorage(db_path, "v2"), clock=clock)
    first.put("Welcome", "Bienvenue", "fr")
    first.put("Sign Up", "S'inscrire", "fr")

    second = TranslationCacheStore(LocalCacheStorage(db_path, "v2"), clock=clock)

    assert second.load() == 2
    assert second.get("Sign Up", "fr") == "S'inscrire"


def test_load_skips_entries_expired_while_stored(tmp_path: Path, clock: FakeClock) -> None:
    db_path: Path = tmp_path / "cache.db"
    TranslationCacheStore(LocalCacheStorage(db_path, "v2"), clock=clock).put("Hello", "Bonjour", "fr")
    clock.advance(25 * 60 * 60)

    reloaded = TranslationCacheStore(LocalCacheStorage(db_path, "v2"), clock=clock)

    assert reloaded.load() == 0


def test_load_discards_other_format_versions(tmp_path: Path, clock: FakeClock) -> None:
    db_path: Path = tmp_path / "cache.db"
    TranslationCacheStore(LocalCacheStorage(db_path, "v1"), clock=clock).put("Hello", "Bonjour", "fr")

    upgraded = TranslationCacheStore(LocalCacheStorage(db_path, "v2"), clock=clock)

    assert upgraded.load() == 0
    assert LocalCacheStorage(db_path, "v1").load() is None


def test_unreadable_blob_is_ignored(clock: FakeClock) -> None:
    storage = LocalCacheStorage(":memory:", "v2")
    storage.save("{not json")
    store = TranslationCacheStore(storage, clock=clock)

    assert store.load() == 0


def test_storage_failures_degrade_to_memory(clock: FakeClock) -> None:
    class BrokenStorage(LocalCacheStorage):
        def save(self, payload: str) -> None:
            _ = payload
            msg = "disk full"
            raise CacheStorageError(msg)

        def load(self) -> str | None:
            msg = "locked"
            raise CacheStorageError(msg)

    store = TranslationCacheStore(BrokenStorage(":memory:", "v2"), clock=clock)

    assert store.load() == 0
    assert store.put("Hello", "Bonjour", "fr") is True
    assert store.get("Hello", "fr") == "Bonjour"
