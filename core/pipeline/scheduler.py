"""Triggers that keep a translated document translated.

New or changed content is picked up by a periodic sweep, a debounced rescan after document
mutations and an immediate rescan after navigation.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from bs4 import Tag

    from core.pipeline.coordinator import LanguageSwitchCoordinator
    from core.pipeline.orchestrator import TranslationOrchestrator
    from models.pipeline_models import CycleReport

__all__: list[str] = ["AutoTranslateScheduler"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class AutoTranslateScheduler:
    """Runs orchestrator cycles for the confirmed language.

    Nothing runs while the confirmed language is the source language or while a language
    switch is in progress; the switch itself translates the document.

    Attributes:
        SWEEP_INTERVAL_SEC (ClassVar[float]): Period of the background sweep.
        MUTATION_DEBOUNCE_SEC (ClassVar[float]): Quiet period after the last mutation notice.
    """

    SWEEP_INTERVAL_SEC: ClassVar[float] = 10.0
    MUTATION_DEBOUNCE_SEC: ClassVar[float] = 0.5

    def __init__(
        self,
        orchestrator: TranslationOrchestrator,
        coordinator: LanguageSwitchCoordinator,
        root_provider: Callable[[], Tag | None],
        *,
        sweep_interval: float | None = None,
        mutation_debounce: float | None = None,
    ) -> None:
        self.orchestrator: TranslationOrchestrator = orchestrator
        self.coordinator: LanguageSwitchCoordinator = coordinator
        self._root_provider: Callable[[], Tag | None] = root_provider
        self._sweep_interval: float = self.SWEEP_INTERVAL_SEC if sweep_interval is None else sweep_interval
        self._mutation_debounce: float = (
            self.MUTATION_DEBOUNCE_SEC if mutation_debounce is None else mutation_debounce
        )
        self._sweep_task: asyncio.Task[None] | None = None
        self._mutation_timer: asyncio.Task[None] | None = None
        self.background_tasks: set[asyncio.Task[CycleReport | None]] = set()

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic sweep."""
        if self.is_running:
            logger.warning("Scheduler is already running")
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="translation_sweep_task")
        logger.debug("Sweep started, every %.1fs", self._sweep_interval)

    async def stop(self) -> None:
        """Stop the sweep, drop a pending mutation rescan and wait for started rescans."""
        timers: list[asyncio.Task[None]] = [
            task for task in (self._sweep_task, self._mutation_timer) if task is not None and not task.done()
        ]
        for task in timers:
            task.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        started: list[asyncio.Task[CycleReport | None]] = [task for task in self.background_tasks if not task.done()]
        while started:
            await asyncio.gather(*started, return_exceptions=True)
            started = [task for task in self.background_tasks if not task.done()]
        self.background_tasks.clear()
        self._sweep_task = None
        self._mutation_timer = None
        logger.debug("'%s' stopped", self.__class__.__name__)

    def notify_mutation(self) -> None:
        """Schedule a rescan once mutations have been quiet for the debounce period."""
        if self._mutation_timer is not None and not self._mutation_timer.done():
            self._mutation_timer.cancel()
        self._mutation_timer = asyncio.create_task(self._debounced_rescan(), name="mutation_debounce_task")

    def notify_navigation(self) -> asyncio.Task[CycleReport | None]:
        """Rescan right away, for example after a route change."""
        return self._spawn_rescan("navigation")

    def _spawn_rescan(self, reason: str) -> asyncio.Task[CycleReport | None]:
        task: asyncio.Task[CycleReport | None] = asyncio.create_task(self.trigger(reason), name=f"{reason}_rescan_task")
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
        return task

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            await self.trigger("sweep")

    async def _debounced_rescan(self) -> None:
        await asyncio.sleep(self._mutation_debounce)
        # a later notice must not cancel a rescan that has already started
        self._mutation_timer = None
        self._spawn_rescan("mutation")

    async def trigger(self, reason: str) -> CycleReport | None:
        """Run one cycle for the confirmed language if there is anything to do.

        Args:
            reason (str): What caused the rescan, for the log.

        Returns:
            CycleReport | None: The cycle's report, or None if nothing ran.
        """
        language: str = self.coordinator.confirmed_language
        if language == self.orchestrator.source_language:
            return None
        if self.coordinator.is_translating:
            logger.debug("Skipping %s rescan, language switch in progress", reason)
            return None
        root: Tag | None = self._root_provider()
        if root is None:
            return None

        logger.debug("Running %s rescan for [%s]", reason, language)
        try:
            return await self.orchestrator.run_cycle(root, language, token=self.coordinator.current_token)
        except Exception as err:  # noqa: BLE001
            logger.error("%s rescan failed: %s", reason.capitalize(), err)
            return None
