"""Language-switch coordination.

A switch is modelled in two phases: the displayed language changes immediately, the confirmed
language only once the document has actually been translated. Every switch carries a fresh
cancellation token; only the holder of the latest token may confirm, and results obtained under
an older token are discarded by the orchestrator.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from core.pipeline.cancellation import CancellationToken
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from bs4 import Tag

    from core.pipeline.orchestrator import TranslationOrchestrator
    from handlers.dom_writer import LedgerRecord
    from models.pipeline_models import CycleReport

__all__: list[str] = ["LanguageSwitchCoordinator", "SwitchFailedError"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class SwitchFailedError(Exception):
    """Raised internally when a switch produced no usable translation."""


class LanguageSwitchCoordinator:
    """Debounces language switches and keeps displayed and confirmed language consistent.

    Attributes:
        DEBOUNCE_SEC (ClassVar[float]): Quiet period before a switch starts working.
    """

    DEBOUNCE_SEC: ClassVar[float] = 0.3

    def __init__(
        self,
        orchestrator: TranslationOrchestrator,
        root_provider: Callable[[], Tag | None],
        *,
        initial_language: str | None = None,
        debounce: float | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            orchestrator (TranslationOrchestrator): Orchestrator running the translation cycles.
            root_provider (Callable[[], Tag | None]): Returns the document to translate, or None if there is none yet.
            initial_language (str | None): Language the document is displayed in. Defaults to the source language.
            debounce (float | None): Debounce delay in seconds.
        """
        self.orchestrator: TranslationOrchestrator = orchestrator
        self._root_provider: Callable[[], Tag | None] = root_provider
        language: str = initial_language or orchestrator.source_language
        self._displayed: str = language
        self._confirmed: str = language
        self._debounce: float = self.DEBOUNCE_SEC if debounce is None else debounce
        self._token: CancellationToken | None = None
        self._timer: asyncio.Task[None] | None = None
        self._workers: set[asyncio.Task[None]] = set()

    @property
    def displayed_language(self) -> str:
        return self._displayed

    @property
    def confirmed_language(self) -> str:
        return self._confirmed

    @property
    def current_token(self) -> CancellationToken | None:
        """Token of the latest switch intent."""
        return self._token

    @property
    def is_translating(self) -> bool:
        """True while a switch is waiting out its debounce or doing its work."""
        return (self._timer is not None and not self._timer.done()) or any(not task.done() for task in self._workers)

    def switch_to(self, language: str) -> None:
        """Request a switch to another language.

        Returns immediately; the displayed language changes at once and the translation work
        starts after the debounce delay. Must be called from within a running event loop.

        Args:
            language (str): Target language code.
        """
        if language == self._displayed and not self.is_translating and language == self._confirmed:
            logger.debug("Already displaying [%s]", language)
            return

        logger.debug("Switch requested: [%s] -> [%s]", self._displayed, language)
        self._displayed = language

        # work past the debounce is never aborted; its token is cancelled instead
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        if self._token is not None:
            self._token.cancel()

        token = CancellationToken(language)
        self._token = token
        self._timer = asyncio.create_task(self._debounced(token), name=f"switch-{language}")

    async def _debounced(self, token: CancellationToken) -> None:
        await asyncio.sleep(self._debounce)
        if token is not self._token:
            return

        self._timer = None
        worker: asyncio.Task[None] = asyncio.create_task(self._execute(token), name=f"switch-work-{token.language}")
        self._workers.add(worker)
        worker.add_done_callback(self._workers.discard)

    async def _execute(self, token: CancellationToken) -> None:
        language: str = token.language
        root: Tag | None = self._root_provider()
        if root is None:
            logger.debug("No document to translate; confirming [%s]", language)
            self._confirm(token)
            return

        writer = self.orchestrator.writer
        snapshot: list[LedgerRecord] = writer.restore()
        try:
            report: CycleReport | None = await self.orchestrator.run_cycle(root, language, token=token)
            if report is None:
                if token.cancelled:
                    return
                msg: str = "Cycle did not run"
                raise SwitchFailedError(msg)
            if report.failed and not (report.cache_hits or report.translated):
                msg = f"No translation obtained ({report.failed} failure(s))"
                raise SwitchFailedError(msg)
        except Exception as err:  # noqa: BLE001
            if token is not self._token:
                logger.debug("Superseded switch to [%s] failed: %s", language, err)
                return
            logger.warning("Switch to [%s] failed, reverting to [%s]: %s", language, self._confirmed, err)
            writer.restore(language)
            writer.reapply(snapshot)
            self._displayed = self._confirmed
            return

        self._confirm(token)

    def _confirm(self, token: CancellationToken) -> None:
        if token is not self._token or token.cancelled:
            logger.debug("Discarding stale completion for [%s]", token.language)
            return
        self._confirmed = token.language
        logger.info("Language switched to [%s]", token.language)

    async def wait_idle(self) -> None:
        """Wait until no switch is debouncing or working."""
        while self.is_translating:
            pending: list[asyncio.Task[None]] = [task for task in self._workers if not task.done()]
            if self._timer is not None and not self._timer.done():
                pending.append(self._timer)
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Cancel the pending switch and wait for work already started."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        if self._token is not None:
            self._token.cancel()
        if self._workers:
            await asyncio.gather(*list(self._workers), return_exceptions=True)
        self._timer = None
        logger.debug("'%s' closed", self.__class__.__name__)
