"""Deduplicating, caching and retrying client for provider calls."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, ClassVar

from core.cache.inflight_manager import InFlightManager
from core.client.interface import TranslationProviderError
from core.client.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, DEFAULT_MAX_JITTER, with_retry
from handlers.async_comm import AsyncCommError
from models.translation_models import ClientStatistics, InvokeResult, SettledResult
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable

    from core.client.interface import ProviderTransport

__all__: list[str] = ["RequestClient"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class RequestClient:
    """Client that sits between the pipeline and a provider transport.

    - Identical requests (same endpoint and body) share a single transport call while it is in flight.
    - Completed results are kept in a short-lived cache and returned without suspending.
    - Transient transport failures are retried with exponential backoff.

    Attributes:
        DEFAULT_TTL_SEC (ClassVar[float]): Lifetime of a cached result.
    """

    DEFAULT_TTL_SEC: ClassVar[float] = 30.0

    def __init__(
        self,
        transport: ProviderTransport,
        inflight_manager: InFlightManager | None = None,
        *,
        default_ttl: float | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_jitter: float = DEFAULT_MAX_JITTER,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the request client.

        Args:
            transport (ProviderTransport): Transport performing the actual provider call.
            inflight_manager (InFlightManager | None): Registry used for deduplication.
            default_ttl (float | None): Result cache lifetime in seconds.
            max_attempts (int): Attempts per transport call.
            base_delay (float): Base backoff delay in seconds.
            max_jitter (float): Upper bound of the backoff jitter in seconds.
            clock (Callable[[], float]): Monotonic time source.
        """
        self._transport: ProviderTransport = transport
        self._inflight: InFlightManager = inflight_manager if inflight_manager is not None else InFlightManager()
        self._default_ttl: float = self.DEFAULT_TTL_SEC if default_ttl is None else default_ttl
        self._max_attempts: int = max_attempts
        self._base_delay: float = base_delay
        self._max_jitter: float = max_jitter
        self._clock: Callable[[], float] = clock
        self._cache: dict[str, tuple[Any, float]] = {}
        self._stats: ClientStatistics = ClientStatistics()

    @staticmethod
    def make_key(endpoint: str, body: dict[str, Any]) -> str:
        """Identity key of a request: the endpoint followed by the canonical JSON of its body."""
        return f"{endpoint}-{StringUtils.canonical_json(body)}"

    def cached(self, endpoint: str, body: dict[str, Any]) -> InvokeResult | None:
        """Return a live cached result without any I/O, or None."""
        key: str = self.make_key(endpoint, body)
        hit: tuple[Any, float] | None = self._cache.get(key)
        if hit is None:
            return None
        data, expires_at = hit
        if self._clock() >= expires_at:
            del self._cache[key]
            return None
        return InvokeResult(data=data, cached=True)

    async def invoke(
        self,
        endpoint: str,
        body: dict[str, Any],
        *,
        ttl: float | None = None,
        skip_cache: bool = False,
    ) -> InvokeResult:
        """Invoke a provider endpoint.

        Args:
            endpoint (str): Provider function name.
            body (dict[str, Any]): JSON request body.
            ttl (float | None): Result cache lifetime for this call. Defaults to ``DEFAULT_TTL_SEC``.
            skip_cache (bool): Bypass the result cache for both reading and writing.

        Returns:
            InvokeResult: The decoded provider response.

        Raises:
            RetryExhaustedError: If every attempt failed with a transient error.
            TranslationProviderError: If the provider rejected the request.
        """
        if not skip_cache:
            hit: InvokeResult | None = self.cached(endpoint, body)
            if hit is not None:
                self._stats.cache_hits += 1
                return hit

        key: str = self.make_key(endpoint, body)
        shared: asyncio.Future[InvokeResult] | None = self._inflight.mark_inflight_start(key)
        if shared is not None:
            self._stats.deduplicated += 1
            return await self._inflight.wait(shared)

        self._stats.network_calls += 1
        started: float = self._clock()
        try:
            data: Any = await with_retry(
                lambda: self._call_transport(endpoint, body),
                max_attempts=self._max_attempts,
                base_delay=self._base_delay,
                max_jitter=self._max_jitter,
                retry_on=(AsyncCommError, TimeoutError),
            )
        except asyncio.CancelledError:
            self._inflight.discard(key)
            raise
        except Exception as err:
            self._stats.failures += 1
            self._inflight.store_inflight_exception(key, err)
            raise

        result = InvokeResult(data=data, cached=False, duration=self._clock() - started)
        if not skip_cache:
            lifetime: float = self._default_ttl if ttl is None else ttl
            self._cache[key] = (data, self._clock() + lifetime)
        self._inflight.store_inflight_result(key, result)
        return result

    async def _call_transport(self, endpoint: str, body: dict[str, Any]) -> Any:
        try:
            return await self._transport.invoke(endpoint, body)
        except AsyncCommError as err:
            if err.is_transient:
                raise
            msg: str = f"Provider rejected '{endpoint}': {err}"
            raise TranslationProviderError(msg) from err

    async def batch_invoke(
        self,
        requests: Iterable[tuple[str, dict[str, Any]]],
        *,
        ttl: float | None = None,
        skip_cache: bool = False,
    ) -> list[SettledResult]:
        """Invoke several requests concurrently, settling each one independently.

        Args:
            requests (Iterable[tuple[str, dict[str, Any]]]): (endpoint, body) pairs.
            ttl (float | None): Result cache lifetime applied to every request.
            skip_cache (bool): Bypass the result cache for every request.

        Returns:
            list[SettledResult]: One outcome per request, in request order.
        """
        outcomes: list[InvokeResult | BaseException] = await asyncio.gather(
            *(self.invoke(endpoint, body, ttl=ttl, skip_cache=skip_cache) for endpoint, body in requests),
            return_exceptions=True,
        )
        settled: list[SettledResult] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.debug("Batch request failed: %s", outcome)
                settled.append(SettledResult(ok=False, error=outcome))
            else:
                settled.append(SettledResult(ok=True, value=outcome))
        return settled

    def clear_cache(self, endpoint: str | None = None) -> int:
        """Drop cached results, optionally only those of one endpoint.

        Returns:
            int: Number of entries removed.
        """
        if endpoint is None:
            removed: int = len(self._cache)
            self._cache.clear()
        else:
            prefix: str = f"{endpoint}-"
            keys: list[str] = [key for key in self._cache if key.startswith(prefix)]
            for key in keys:
                del self._cache[key]
            removed = len(keys)
        logger.debug("Cleared %d cached result(s)", removed)
        return removed

    def stats(self) -> ClientStatistics:
        now: float = self._clock()
        for key in [key for key, (_, expires_at) in self._cache.items() if now >= expires_at]:
            del self._cache[key]
        self._stats.cached = len(self._cache)
        self._stats.in_flight = len(self._inflight)
        return ClientStatistics(**vars(self._stats))

    async def close(self) -> None:
        self._inflight.clear()
        self._cache.clear()
        await self._transport.close()
