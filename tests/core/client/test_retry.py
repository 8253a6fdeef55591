from __future__ import annotations

import pytest

from core.client import retry
from core.client.retry import RetryExhaustedError, backoff_delay, with_retry


def test_backoff_doubles_per_attempt(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(retry.random, "uniform", lambda low, high: high)

    assert backoff_delay(1, 1.0, 0.5) == pytest.approx(1.5)
    assert backoff_delay(2, 1.0, 0.5) == pytest.approx(2.5)
    assert backoff_delay(3, 1.0, 0.5) == pytest.approx(4.5)


def test_backoff_jitter_is_bounded() -> None:
    for _ in range(50):
        assert 2.0 <= backoff_delay(2, 1.0, 1.0) <= 3.0


@pytest.mark.asyncio
async def test_with_retry_returns_first_success(monkeypatch: pytest.MonkeyPatch) -> None:
    delays: list[int] = []
    monkeypatch.setattr(retry, "backoff_delay", lambda attempt, base, jitter: delays.append(attempt) or 0.0)
    attempts: list[int] = []

    async def flaky() -> str:
        attempts.append(1)
        if len(attempts) < 3:
            msg = "not yet"
            raise ConnectionError(msg)
        return "done"

    assert await with_retry(flaky, max_attempts=3) == "done"
    assert delays == [1, 2]


@pytest.mark.asyncio
async def test_with_retry_gives_up(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(retry, "backoff_delay", lambda attempt, base, jitter: 0.0)

    async def broken() -> None:
        msg = "down"
        raise ConnectionError(msg)

    with pytest.raises(RetryExhaustedError) as excinfo:
        await with_retry(broken, max_attempts=2)

    assert excinfo.value.attempts == 2
    assert isinstance(excinfo.value.last_error, ConnectionError)


@pytest.mark.asyncio
async def test_with_retry_does_not_retry_other_errors() -> None:
    calls: list[int] = []

    async def invalid() -> None:
        calls.append(1)
        msg = "bad input"
        raise ValueError(msg)

    with pytest.raises(ValueError, match="bad input"):
        await with_retry(invalid, retry_on=(ConnectionError,))

    assert calls == [1]
