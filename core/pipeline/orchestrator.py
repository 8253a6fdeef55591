"""Translation queue and cycle orchestration.

One cycle scans a document, groups what it found by request identity, resolves each group
against the cache store (warming it from the remote store once per cycle on a miss), sends
the remaining misses to the provider in small batches and writes the results back.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, TypeAlias

from core.client.interface import InvalidTranslationError, TranslationProviderError
from core.client.retry import RetryExhaustedError
from core.remote.store import RemoteStoreError
from models.pipeline_models import CyclePhase, CycleReport, ProgressEvent
from models.translation_models import ProviderReply, QueueState, TranslationRequest, TranslationResult
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

    from bs4 import Tag

    from core.cache.remote_loader import RemoteCacheLoader
    from core.cache.store import TranslationCacheStore
    from core.client.request_client import RequestClient
    from core.pipeline.cancellation import CancellationToken
    from core.remote.store import RemoteTranslationStore
    from core.scanner.scanner import ContentScanner
    from handlers.dom_writer import DomWriter
    from models.content_models import DetectedItem
    from models.translation_models import InvokeResult, SettledResult

__all__: list[str] = ["ProgressListener", "TranslationOrchestrator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ProgressListener: TypeAlias = "Callable[[ProgressEvent], None] | Callable[[ProgressEvent], Awaitable[None]]"


@dataclass
class _PendingCycle:
    root: Tag
    target_language: str
    token: CancellationToken | None
    reset: bool
    future: asyncio.Future[CycleReport | None]


class TranslationOrchestrator:
    """Runs translation cycles over a document.

    Only one cycle runs at a time. A cycle requested while another is running is coalesced
    into a single pending slot: the newest request replaces an older pending one (whose
    caller receives None) and starts as soon as the running cycle finishes.

    Results obtained for a cancelled token are still cached but never applied.

    Attributes:
        BATCH_SIZE (ClassVar[int]): Distinct texts per provider batch.
        TRANSLATE_ENDPOINT (ClassVar[str]): Provider function used for translation.
    """

    BATCH_SIZE: ClassVar[int] = 5
    TRANSLATE_ENDPOINT: ClassVar[str] = "ai-translate"

    def __init__(
        self,
        scanner: ContentScanner,
        writer: DomWriter,
        cache_store: TranslationCacheStore,
        request_client: RequestClient,
        loader: RemoteCacheLoader | None = None,
        remote_store: RemoteTranslationStore | None = None,
        *,
        source_language: str = "en",
        batch_size: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            scanner (ContentScanner): Scanner producing detected items.
            writer (DomWriter): Writer applying results; must share the scanner's ledger.
            cache_store (TranslationCacheStore): Cache consulted before any provider call.
            request_client (RequestClient): Client used for provider calls.
            loader (RemoteCacheLoader | None): Remote cache warmer, consulted on the first miss of a cycle.
            remote_store (RemoteTranslationStore | None): Store receiving new translations in the background.
            source_language (str): Language the document is authored in.
            batch_size (int | None): Distinct texts per provider batch.
            endpoint (str | None): Provider function name.
        """
        self.scanner: ContentScanner = scanner
        self.writer: DomWriter = writer
        self.cache_store: TranslationCacheStore = cache_store
        self.request_client: RequestClient = request_client
        self.loader: RemoteCacheLoader | None = loader
        self.remote_store: RemoteTranslationStore | None = remote_store
        self.source_language: str = source_language
        self._batch_size: int = self.BATCH_SIZE if batch_size is None else batch_size
        self._endpoint: str = self.TRANSLATE_ENDPOINT if endpoint is None else endpoint
        self._listeners: list[ProgressListener] = []
        self._active: bool = False
        self._pending: _PendingCycle | None = None
        self._background: set[asyncio.Task[None]] = set()
        self._closed: bool = False

    @property
    def is_running(self) -> bool:
        return self._active

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def add_listener(self, listener: ProgressListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def run_cycle(
        self,
        root: Tag,
        target_language: str,
        *,
        token: CancellationToken | None = None,
        reset: bool = False,
    ) -> CycleReport | None:
        """Translate a document into a target language.

        Args:
            root (Tag): Document or subtree to translate.
            target_language (str): Target language code.
            token (CancellationToken | None): Token guarding the writes of this cycle.
            reset (bool): Restore previously applied translations before scanning. Used when
                the target language changes.

        Returns:
            CycleReport | None: The cycle's counters, or None if the request was superseded by a
            newer one before it could start, or was cancelled before it started.
        """
        if self._closed:
            logger.debug("Orchestrator closed; ignoring cycle for [%s]", target_language)
            return None

        if self._active:
            return await self._defer(root, target_language, token, reset)

        self._active = True
        return await self._run_guarded(root, target_language, token, reset)

    async def _defer(
        self, root: Tag, target_language: str, token: CancellationToken | None, reset: bool
    ) -> CycleReport | None:
        if self._pending is not None and not self._pending.future.done():
            logger.debug("Pending cycle for [%s] superseded", self._pending.target_language)
            self._pending.future.set_result(None)

        future: asyncio.Future[CycleReport | None] = asyncio.get_running_loop().create_future()
        # a superseded reset must not be lost: the newer request still has to undo old writes
        carried_reset: bool = reset or (self._pending is not None and self._pending.reset)
        self._pending = _PendingCycle(root, target_language, token, carried_reset, future)
        logger.debug("Cycle for [%s] coalesced into pending", target_language)
        return await asyncio.shield(future)

    async def _run_guarded(
        self, root: Tag, target_language: str, token: CancellationToken | None, reset: bool
    ) -> CycleReport | None:
        try:
            return await self._run(root, target_language, token, reset)
        finally:
            self._active = False
            self._start_pending()

    def _start_pending(self) -> None:
        pending: _PendingCycle | None = self._pending
        if pending is None:
            return
        self._pending = None
        if self._closed or pending.future.done():
            if not pending.future.done():
                pending.future.set_result(None)
            return

        self._active = True
        task: asyncio.Task[CycleReport | None] = asyncio.create_task(
            self._run_guarded(pending.root, pending.target_language, pending.token, pending.reset),
            name=f"cycle-{pending.target_language}",
        )
        task.add_done_callback(lambda done: _settle(pending.future, done))

    async def _run(
        self, root: Tag, target_language: str, token: CancellationToken | None, reset: bool
    ) -> CycleReport | None:
        if token is not None and token.cancelled:
            logger.debug("Cycle for [%s] cancelled before start", target_language)
            return None

        report = CycleReport(target_language=target_language)
        if reset:
            report.restored = len(self.writer.restore())

        if target_language == self.source_language:
            await self._emit(ProgressEvent(CyclePhase.IDLE, 0, 0, target_language))
            return report

        await self._emit(ProgressEvent(CyclePhase.SCANNING, 0, 0, target_language))
        items: list[DetectedItem] = self.scanner.scan(root)
        report.detected = len(items)

        queue = QueueState()
        groups: dict[str, list[DetectedItem]] = {}
        for item in items:
            request = TranslationRequest(
                text=item.text,
                source_lang=self.source_language,
                target_lang=target_language,
                context=item.context,
                translation_type=item.analysis.translation_type,
            )
            queue.enqueue(request)
            groups.setdefault(request.identity_key, []).append(item)

        total: int = len(queue)
        report.requested = total
        processed: int = 0
        warmed: bool = False

        while queue:
            batch: list[TranslationRequest] = queue.take(self._batch_size)
            await self._emit(ProgressEvent(CyclePhase.BATCHING, processed, total, target_language))
            try:
                resolved, warmed = await self._resolve_batch(batch, target_language, report, warmed=warmed)
            except Exception as err:  # noqa: BLE001
                logger.error("Batch failed for [%s]: %s", target_language, err)
                report.failed += len(batch)
                processed += len(batch)
                await self._emit(ProgressEvent(CyclePhase.ERROR, processed, total, target_language, error=str(err)))
                continue

            processed += len(batch)
            for request in batch:
                result: TranslationResult | None = resolved.get(request.identity_key)
                if result is not None:
                    queue.complete(request, result)

            if token is not None and token.cancelled:
                logger.debug("Cycle for [%s] superseded; discarding %d result(s)", target_language, len(resolved))
                report.stale = True
                break

            await self._emit(ProgressEvent(CyclePhase.APPLYING, processed, total, target_language))
            for key, result in resolved.items():
                for item in groups.get(key, []):
                    if self.writer.apply(item, result.translated_text, target_language, root=root):
                        report.applied += 1
                    else:
                        report.skipped += 1

        await self._emit(ProgressEvent(CyclePhase.IDLE, processed, total, target_language))
        logger.info(
            "Cycle [%s]: %d detected, %d distinct, %d cached, %d translated, %d applied, %d failed%s",
            target_language,
            report.detected,
            report.requested,
            report.cache_hits,
            report.translated,
            report.applied,
            report.failed,
            " (stale)" if report.stale else "",
        )
        return report

    async def _resolve_batch(
        self,
        batch: list[TranslationRequest],
        target_language: str,
        report: CycleReport,
        *,
        warmed: bool,
    ) -> tuple[dict[str, TranslationResult], bool]:
        """Resolve one batch through the cache store, the remote warm and the provider.

        Returns:
            tuple[dict[str, TranslationResult], bool]: Results by identity key, and whether the
            remote warm has been attempted in this cycle.
        """
        resolved: dict[str, TranslationResult] = {}
        misses: list[TranslationRequest] = []
        for request in batch:
            hit: str | None = self.cache_store.get(request.text, target_language)
            if hit is None:
                misses.append(request)
            else:
                resolved[request.identity_key] = TranslationResult(translated_text=hit, cached=True)

        if misses and not warmed and self.loader is not None:
            warmed = True
            warm: asyncio.Task[int] | None = self.loader.warm(target_language)
            if warm is not None:
                # waiting must neither cancel the shared warm nor fail if it was cancelled
                await asyncio.wait({warm})
                still_missing: list[TranslationRequest] = []
                for request in misses:
                    hit = self.cache_store.get(request.text, target_language, count_miss=False)
                    if hit is None:
                        still_missing.append(request)
                    else:
                        resolved[request.identity_key] = TranslationResult(translated_text=hit, cached=True)
                misses = still_missing

        report.cache_hits += len(resolved)
        if not misses:
            return resolved, warmed

        await self._emit(
            ProgressEvent(CyclePhase.TRANSLATING, report.cache_hits + report.translated, report.requested, target_language)
        )
        settled: list[SettledResult] = await self.request_client.batch_invoke(
            (self._endpoint, request.to_dict()) for request in misses
        )

        failures: int = 0
        for request, outcome in zip(misses, settled, strict=True):
            if not outcome.ok or outcome.value is None:
                logger.warning("Translation failed for %r: %s", request.text[:40], outcome.error)
                failures += 1
                continue
            try:
                result: TranslationResult = self._parse_reply(outcome.value)
            except InvalidTranslationError as err:
                logger.warning("Invalid translation for %r: %s", request.text[:40], err)
                failures += 1
                continue

            self.cache_store.put(request.text, result.translated_text, target_language)
            self._upsert_later(request.text, result.translated_text, target_language)
            resolved[request.identity_key] = result
            report.translated += 1

        if failures:
            report.failed += failures
            await self._emit(
                ProgressEvent(
                    CyclePhase.ERROR,
                    report.cache_hits + report.translated + report.failed,
                    report.requested,
                    target_language,
                    error=f"{failures} of {len(misses)} translation(s) failed",
                )
            )
        return resolved, warmed

    @staticmethod
    def _parse_reply(outcome: InvokeResult) -> TranslationResult:
        """Extract the translated text from a provider reply.

        Raises:
            InvalidTranslationError: If the reply carries no usable text.
        """
        data = outcome.data
        if not isinstance(data, dict):
            msg: str = f"Unexpected reply type: {type(data).__name__}"
            raise InvalidTranslationError(msg)
        try:
            reply: ProviderReply = ProviderReply.from_dict(data)
        except (KeyError, TypeError, ValueError) as err:
            msg = f"Malformed reply: {err}"
            raise InvalidTranslationError(msg) from err
        if not isinstance(reply.translated_text, str) or not reply.translated_text.strip():
            msg = "Reply has no translated text"
            raise InvalidTranslationError(msg)
        return TranslationResult(
            translated_text=reply.translated_text.strip(),
            confidence=reply.confidence,
            cached=outcome.cached,
            duration=outcome.duration,
        )

    async def translate_text(
        self, text: str, target_language: str, context: str | None = None
    ) -> TranslationResult | None:
        """Translate a single string outside of a document cycle.

        Shares the cache store and the request client with the cycle path.

        Args:
            text (str): Source text.
            target_language (str): Target language code.
            context (str | None): Context hint for the provider.

        Returns:
            TranslationResult | None: The translation, or None if it could not be obtained.
        """
        trimmed: str = text.strip()
        if not trimmed:
            return None
        if target_language == self.source_language:
            return TranslationResult(translated_text=trimmed, cached=True)

        started: float = time.monotonic()
        hit: str | None = self.cache_store.get(trimmed, target_language)
        if hit is not None:
            return TranslationResult(translated_text=hit, cached=True, duration=time.monotonic() - started)

        request = TranslationRequest(
            text=trimmed, source_lang=self.source_language, target_lang=target_language, context=context
        )
        try:
            outcome: InvokeResult = await self.request_client.invoke(self._endpoint, request.to_dict())
            result: TranslationResult = self._parse_reply(outcome)
        except (RetryExhaustedError, TranslationProviderError) as err:
            logger.warning("Translation failed for %r: %s", trimmed[:40], err)
            return None
        except Exception as err:  # noqa: BLE001
            logger.error("Unexpected error translating %r: %s", trimmed[:40], err)
            return None

        self.cache_store.put(trimmed, result.translated_text, target_language)
        self._upsert_later(trimmed, result.translated_text, target_language)
        return result

    def _upsert_later(self, original: str, translated: str, target_language: str) -> None:
        if self.remote_store is None or self._closed:
            return
        task: asyncio.Task[None] = asyncio.create_task(self._upsert(original, translated, target_language))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _upsert(self, original: str, translated: str, target_language: str) -> None:
        if self.remote_store is None:
            return
        try:
            await self.remote_store.upsert(original, translated, target_language)
        except RemoteStoreError as err:
            logger.warning("Remote upsert failed: %s", err)
        except Exception as err:  # noqa: BLE001
            logger.error("Unexpected error during remote upsert: %s", err)

    async def _emit(self, event: ProgressEvent) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as err:  # noqa: BLE001
                logger.error("Progress listener error for %s: %r", event.phase, err)

    async def drain(self) -> None:
        """Wait for background remote upserts to finish."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        """Stop accepting cycles, release the pending request and flush background work."""
        self._closed = True
        if self._pending is not None and not self._pending.future.done():
            self._pending.future.set_result(None)
        self._pending = None
        await self.drain()


def _settle(future: asyncio.Future[CycleReport | None], task: asyncio.Task[CycleReport | None]) -> None:
    if future.done():
        return
    if task.cancelled():
        future.cancel()
    elif task.exception() is not None:
        future.set_exception(task.exception())  # type: ignore[arg-type]
    else:
        future.set_result(task.result())
