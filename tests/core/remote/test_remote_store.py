from __future__ import annotations

from typing import Any

import pytest

from core.remote.store import NullRemoteStore, RemoteStoreError, RestTranslationStore
from handlers.async_comm import AsyncCommError
from models.config_models import Config


class RecordingHttp:
    def __init__(self, reply: Any = None, *, fail: bool = False) -> None:
        self.reply: Any = reply
        self.fail: bool = fail
        self.gets: list[dict[str, Any]] = []
        self.posts: list[dict[str, Any]] = []

    async def get(self, **kwargs: Any) -> Any:
        self.gets.append(kwargs)
        if self.fail:
            msg = "The server is not running, or the port is closed."
            raise AsyncCommError(msg)
        return self.reply

    async def post(self, **kwargs: Any) -> Any:
        self.posts.append(kwargs)
        if self.fail:
            msg = "Error response from the server."
            raise AsyncCommError(msg)
        return None


@pytest.mark.asyncio
async def test_list_translations_queries_newest_rows() -> None:
    http = RecordingHttp(
        [
            {"original": "Welcome", "translated": "Bienvenue", "target_lang": "fr"},
            {"unexpected": True},
        ]
    )
    store = RestTranslationStore("https://example.test", http=http)  # type: ignore[arg-type]

    rows = await store.list_translations("fr", 500)

    assert [(row.original, row.translated) for row in rows][0] == ("Welcome", "Bienvenue")
    [request] = http.gets
    assert request["url"] == "https://example.test/rest/v1/translation_cache"
    assert request["params"]["target_lang"] == "eq.fr"
    assert request["params"]["order"] == "inserted_at.desc"
    assert request["params"]["limit"] == "500"


@pytest.mark.asyncio
async def test_list_translations_wraps_transport_errors() -> None:
    store = RestTranslationStore("https://example.test", http=RecordingHttp(fail=True))  # type: ignore[arg-type]

    with pytest.raises(RemoteStoreError):
        await store.list_translations("fr", 10)


@pytest.mark.asyncio
async def test_list_translations_rejects_non_list_reply() -> None:
    store = RestTranslationStore("https://example.test", http=RecordingHttp({"error": "x"}))  # type: ignore[arg-type]

    with pytest.raises(RemoteStoreError, match="Unexpected response"):
        await store.list_translations("fr", 10)


@pytest.mark.asyncio
async def test_upsert_merges_on_original_and_language() -> None:
    http = RecordingHttp()
    store = RestTranslationStore("https://example.test", table="translations", http=http)  # type: ignore[arg-type]

    await store.upsert("Sign Up", "S'inscrire", "fr")

    [request] = http.posts
    assert request["url"] == "https://example.test/rest/v1/translations"
    assert request["params"] == {"on_conflict": "original,target_lang"}
    assert request["data"] == {"original": "Sign Up", "translated": "S'inscrire", "target_lang": "fr"}
    assert "merge-duplicates" in request["headers"]["Prefer"]


@pytest.mark.asyncio
async def test_upsert_wraps_transport_errors() -> None:
    store = RestTranslationStore("https://example.test", http=RecordingHttp(fail=True))  # type: ignore[arg-type]

    with pytest.raises(RemoteStoreError):
        await store.upsert("a", "b", "fr")


def test_from_config_without_backend_is_null_store() -> None:
    assert isinstance(RestTranslationStore.from_config(Config()), NullRemoteStore)


@pytest.mark.asyncio
async def test_null_store_is_empty() -> None:
    store = NullRemoteStore()

    await store.upsert("a", "b", "fr")

    assert await store.list_translations("fr", 10) == []
