from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging


__all__: list[str] = ["InFlightManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class InFlightManager:
    """Registry of in-flight requests keyed by identity.

    The first caller for a key registers a future and becomes its producer; later callers
    receive that same future and await it. Every method is synchronous so that checking for,
    inserting and removing a marker each happen without a suspension point in between.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._inflight)

    def __contains__(self, key: object) -> bool:
        return key in self._inflight

    def mark_inflight_start(self, key: str) -> asyncio.Future[Any] | None:
        """Register a key as in flight.

        Args:
            key (str): Identity key of the request.

        Returns:
            asyncio.Future[Any] | None: The existing shared future if the key is already in flight,
            or None if the caller has just become the producer.

        Raises:
            ValueError: If the key is empty.
        """
        if not key:
            msg = "In-flight key must not be empty"
            raise ValueError(msg)

        existing: asyncio.Future[Any] | None = self._inflight.get(key)
        if existing is not None:
            logger.debug("In-flight request detected for key: %s", LoggerUtils.preview(key))
            return existing

        self._inflight[key] = asyncio.get_running_loop().create_future()
        logger.debug("Marked in-flight start for key: %s", LoggerUtils.preview(key))
        return None

    async def wait(self, future: asyncio.Future[Any]) -> Any:
        """Await a shared future without letting the waiter's cancellation cancel the producer."""
        return await asyncio.shield(future)

    def store_inflight_result(self, key: str, result: Any) -> None:
        """Resolve the shared future of a key and remove its marker."""
        fut: asyncio.Future[Any] | None = self._inflight.pop(key, None)
        if fut is not None and not fut.done():
            fut.set_result(result)
            logger.debug("Set in-flight result for key: %s", LoggerUtils.preview(key))
        else:
            logger.warning("No pending in-flight future for key: %s when storing result", LoggerUtils.preview(key))

    def store_inflight_exception(self, key: str, exc: BaseException) -> None:
        """Fail the shared future of a key and remove its marker."""
        fut: asyncio.Future[Any] | None = self._inflight.pop(key, None)
        if fut is not None and not fut.done():
            fut.set_exception(exc)
            # the producer re-raises on its own; waiters still receive the exception
            fut.exception()
            logger.debug("Set in-flight exception for key: %s", LoggerUtils.preview(key))
        else:
            logger.warning("No pending in-flight future for key: %s when storing exception", LoggerUtils.preview(key))

    def discard(self, key: str) -> None:
        """Remove a marker whose producer stopped without a result, cancelling its waiters."""
        fut: asyncio.Future[Any] | None = self._inflight.pop(key, None)
        if fut is not None and not fut.done():
            fut.cancel()
            logger.debug("Discarded in-flight marker for key: %s", LoggerUtils.preview(key))

    def clear(self) -> None:
        """Cancel every pending future and clear the registry."""
        for fut in self._inflight.values():
            if not fut.done():
                fut.cancel()
        self._inflight.clear()
        logger.info("In-flight state cleared")
