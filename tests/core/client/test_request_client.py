"""Tests for RequestClient.

Tests deduplication of concurrent identical calls, the short-lived result cache, retries
and per-request settlement of batches.
"""

from __future__ import annotations

import asyncio

import pytest

from core.client.interface import TranslationProviderError
from core.client.request_client import RequestClient
from core.client.retry import RetryExhaustedError
from handlers.async_comm import AsyncCommError
from tests.doubles import StubTransport

BODY: dict[str, str] = {"text": "Welcome", "sourceLang": "en", "targetLang": "fr"}


class FakeClock:
    def __init__(self) -> None:
        self.now: float = 0.0

    def __call__(self) -> float:
        return self.now


def rejected(status: int) -> AsyncCommError:
    err = AsyncCommError("Error response from the server.")
    err.status = status
    return err


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport({"fr": {"Welcome": "Bienvenue", "Sign Up": "S'inscrire"}})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(transport: StubTransport, clock: FakeClock) -> RequestClient:
    return RequestClient(transport, base_delay=0.0, max_jitter=0.0, clock=clock)


def test_make_key_ignores_body_key_order() -> None:
    first = RequestClient.make_key("ai-translate", {"a": 1, "b": 2})
    second = RequestClient.make_key("ai-translate", {"b": 2, "a": 1})

    assert first == second
    assert first.startswith("ai-translate-")


@pytest.mark.asyncio
async def test_concurrent_identical_requests_share_one_call(client: RequestClient, transport: StubTransport) -> None:
    transport.gates["fr"] = asyncio.Event()

    pending = asyncio.gather(client.invoke("ai-translate", BODY), client.invoke("ai-translate", dict(BODY)))
    await asyncio.sleep(0)
    transport.gates["fr"].set()
    first, second = await pending

    assert len(transport.calls) == 1
    assert first.data == second.data == {"translatedText": "Bienvenue"}
    stats = client.stats()
    assert stats.network_calls == 1
    assert stats.deduplicated == 1


@pytest.mark.asyncio
async def test_cached_result_is_returned_until_ttl(
    client: RequestClient, transport: StubTransport, clock: FakeClock
) -> None:
    await client.invoke("ai-translate", BODY)

    again = await client.invoke("ai-translate", BODY)
    assert again.cached is True
    assert len(transport.calls) == 1

    clock.now += 31.0
    fresh = await client.invoke("ai-translate", BODY)
    assert fresh.cached is False
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_custom_ttl_applies_per_call(client: RequestClient, transport: StubTransport, clock: FakeClock) -> None:
    await client.invoke("ai-translate", BODY, ttl=5.0)
    clock.now += 6.0

    await client.invoke("ai-translate", BODY)

    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_skip_cache_always_reaches_transport(client: RequestClient, transport: StubTransport) -> None:
    await client.invoke("ai-translate", BODY)
    await client.invoke("ai-translate", BODY, skip_cache=True)

    assert len(transport.calls) == 2
    assert client.cached("ai-translate", BODY) is not None


def test_cached_returns_none_without_entry(client: RequestClient) -> None:
    assert client.cached("ai-translate", BODY) is None


@pytest.mark.asyncio
async def test_transient_failure_is_retried(client: RequestClient, transport: StubTransport) -> None:
    transport.errors = [AsyncCommError("The server is not running, or the port is closed.")]

    result = await client.invoke("ai-translate", BODY)

    assert result.data == {"translatedText": "Bienvenue"}
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_server_errors_are_retried(client: RequestClient, transport: StubTransport) -> None:
    transport.errors = [rejected(503), rejected(429)]

    await client.invoke("ai-translate", BODY)

    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_rejected_request_is_not_retried(client: RequestClient, transport: StubTransport) -> None:
    transport.errors = [rejected(400)]

    with pytest.raises(TranslationProviderError):
        await client.invoke("ai-translate", BODY)

    assert len(transport.calls) == 1
    assert client.stats().failures == 1


@pytest.mark.asyncio
async def test_exhausted_retries_clear_inflight_marker(client: RequestClient, transport: StubTransport) -> None:
    transport.errors = [TimeoutError(), TimeoutError(), TimeoutError()]

    with pytest.raises(RetryExhaustedError):
        await client.invoke("ai-translate", BODY)

    assert len(transport.calls) == 3
    assert client.stats().in_flight == 0
    assert client.cached("ai-translate", BODY) is None


@pytest.mark.asyncio
async def test_waiters_receive_the_producer_failure(client: RequestClient, transport: StubTransport) -> None:
    transport.gates["fr"] = asyncio.Event()
    transport.errors = [rejected(403)]

    pending = asyncio.gather(
        client.invoke("ai-translate", BODY), client.invoke("ai-translate", BODY), return_exceptions=True
    )
    await asyncio.sleep(0)
    transport.gates["fr"].set()
    outcomes = await pending

    assert all(isinstance(outcome, TranslationProviderError) for outcome in outcomes)
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_batch_invoke_settles_each_request(client: RequestClient, transport: StubTransport) -> None:
    transport.failing_texts = {"Sign Up"}
    bodies = [
        ("ai-translate", BODY),
        ("ai-translate", {**BODY, "text": "Sign Up"}),
    ]

    settled = await client.batch_invoke(bodies)

    assert [outcome.ok for outcome in settled] == [True, False]
    assert settled[0].value is not None
    assert settled[0].value.data == {"translatedText": "Bienvenue"}
    assert isinstance(settled[1].error, RuntimeError)


@pytest.mark.asyncio
async def test_clear_cache_by_endpoint(client: RequestClient) -> None:
    await client.invoke("ai-translate", BODY)
    await client.invoke("detect-language", BODY)

    assert client.clear_cache("ai-translate") == 1
    assert client.cached("detect-language", BODY) is not None
    assert client.clear_cache() == 1


@pytest.mark.asyncio
async def test_close_closes_transport(client: RequestClient, transport: StubTransport) -> None:
    await client.close()

    assert transport.closed is True
