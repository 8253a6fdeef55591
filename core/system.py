"""Composition root of the automatic translation pipeline.

Builds every component from a ``Config`` and wires them together. Nothing in the pipeline is
a module-level singleton; a host creates one ``AutoTranslateSystem`` per document it manages.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from core.cache.inflight_manager import InFlightManager
from core.cache.remote_loader import RemoteCacheLoader
from core.cache.storage import LocalCacheStorage
from core.cache.store import TranslationCacheStore
from core.client.interface import ProviderTransport
from core.client.request_client import RequestClient
from core.client.transport import EdgeFunctionTransport
from core.pipeline.coordinator import LanguageSwitchCoordinator
from core.pipeline.orchestrator import TranslationOrchestrator
from core.pipeline.scheduler import AutoTranslateScheduler
from core.remote.store import RestTranslationStore
from core.scanner.classifier import ContentClassifier
from core.scanner.scanner import ContentScanner
from handlers.dom_writer import DomWriter, TranslationLedger
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from bs4 import Tag

    from config.loader import Config
    from core.remote.store import RemoteTranslationStore
    from models.cache_models import CacheStatistics
    from models.pipeline_models import CycleReport
    from models.translation_models import ClientStatistics, TranslationResult

__all__: list[str] = ["AutoTranslateSystem"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# referenced so the edge-function transport is registered before ProviderTransport.create()
_TRANSPORTS: tuple[type[ProviderTransport], ...] = (EdgeFunctionTransport,)


class AutoTranslateSystem:
    """Owns and wires the pipeline components for one document.

    Attributes:
        config (Config): Configuration the components were built from.
        cache_store (TranslationCacheStore): Local translation cache.
        remote_store (RemoteTranslationStore): Shared remote translation table.
        loader (RemoteCacheLoader): Remote cache warmer.
        request_client (RequestClient): Deduplicating provider client.
        scanner (ContentScanner): Content scanner.
        writer (DomWriter): Document writer, sharing its ledger with the scanner.
        orchestrator (TranslationOrchestrator): Cycle runner.
        coordinator (LanguageSwitchCoordinator): Language switch state.
        scheduler (AutoTranslateScheduler): Sweep and rescan triggers.
    """

    def __init__(
        self,
        config: Config,
        *,
        transport: ProviderTransport | None = None,
        remote_store: RemoteTranslationStore | None = None,
        storage: LocalCacheStorage | None = None,
    ) -> None:
        """Build the pipeline.

        Args:
            config (Config): Loaded configuration.
            transport (ProviderTransport | None): Provider transport. Defaults to the configured one.
            remote_store (RemoteTranslationStore | None): Remote store. Defaults to the configured backend.
            storage (LocalCacheStorage | None): Local persistent store. Defaults to ``CACHE.PATH``.
        """
        self.config: Config = config
        self._root: Tag | None = None
        self._loaded: bool = False

        if storage is None and config.CACHE.PATH:
            storage = LocalCacheStorage(Path(config.CACHE.PATH), config.CACHE.FORMAT_VERSION)
        self._storage: LocalCacheStorage | None = storage
        self.cache_store = TranslationCacheStore(
            storage,
            ttl=config.CACHE.TTL_HOURS * 60 * 60,
            capacity=config.CACHE.CAPACITY,
            eviction_ratio=config.CACHE.EVICTION_RATIO,
        )

        self.remote_store: RemoteTranslationStore = (
            remote_store if remote_store is not None else RestTranslationStore.from_config(config)
        )
        self.loader = RemoteCacheLoader(
            self.cache_store,
            self.remote_store,
            cooldown=config.CACHE.WARM_COOLDOWN,
            limit=config.CACHE.WARM_LIMIT,
        )

        self.request_client = RequestClient(
            transport if transport is not None else ProviderTransport.create(config),
            InFlightManager(),
            default_ttl=config.TRANSLATION.RESULT_TTL,
            max_attempts=config.TRANSLATION.MAX_ATTEMPTS,
            base_delay=config.TRANSLATION.BASE_DELAY,
            max_jitter=config.TRANSLATION.MAX_JITTER,
        )

        ledger = TranslationLedger()
        self.scanner = ContentScanner(
            ContentClassifier(),
            ledger,
            min_length=config.SCANNER.MIN_LENGTH,
            exclude_selectors=config.SCANNER.EXCLUDE_SELECTORS,
            attributes=config.SCANNER.ATTRIBUTES,
            skip_tags=config.SCANNER.SKIP_TAGS,
        )
        self.writer = DomWriter(ledger)

        self.orchestrator = TranslationOrchestrator(
            self.scanner,
            self.writer,
            self.cache_store,
            self.request_client,
            self.loader,
            self.remote_store,
            source_language=config.GENERAL.SOURCE_LANGUAGE,
            batch_size=config.TRANSLATION.BATCH_SIZE,
            endpoint=config.BACKEND.TRANSLATE_ENDPOINT,
        )
        self.coordinator = LanguageSwitchCoordinator(
            self.orchestrator,
            self.get_root,
            debounce=config.SWITCH.DEBOUNCE,
        )
        self.scheduler = AutoTranslateScheduler(
            self.orchestrator,
            self.coordinator,
            self.get_root,
            sweep_interval=config.SWITCH.SWEEP_INTERVAL,
            mutation_debounce=config.SWITCH.MUTATION_DEBOUNCE,
        )
        logger.debug("'%s' built", self.__class__.__name__)

    @staticmethod
    def setup_logging(config: Config, *, use_null_console: bool = False) -> None:
        """Configure the pipeline's log output from the ``GENERAL`` section.

        Handlers are installed once per process; later calls only adjust the level.

        Args:
            config (Config): Loaded configuration.
            use_null_console (bool): Discard console output, for hosts that own stderr.
        """
        logger_utils = LoggerUtils(config.GENERAL.LOG_FILE, use_null_console=use_null_console)
        logger_utils.set_level("DEBUG" if config.GENERAL.DEBUG else "INFO")

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def supported_languages(self) -> list[str]:
        return list(self.config.GENERAL.SUPPORTED_LANGUAGES)

    def get_root(self) -> Tag | None:
        return self._root

    def attach(self, root: Tag) -> None:
        """Set the document the pipeline works on."""
        self._root = root

    async def component_load(self) -> None:
        """Restore the local cache and start the background triggers."""
        if self._loaded:
            logger.warning("'%s' is already loaded", self.__class__.__name__)
            return
        restored: int = self.cache_store.load()
        logger.info("Translation cache restored with %d entries", restored)
        self.scheduler.start()
        self._loaded = True
        logger.debug("'%s' component loaded", self.__class__.__name__)

    async def component_teardown(self) -> None:
        """Stop the triggers and release every resource."""
        await self.scheduler.stop()
        await self.coordinator.close()
        await self.orchestrator.close()
        await self.loader.close()
        await self.request_client.close()
        await self.remote_store.close()
        if self._storage is not None:
            self._storage.close()
        self._loaded = False
        logger.debug("'%s' component unloaded", self.__class__.__name__)

    def switch_to(self, language: str) -> None:
        """Switch the document to another language.

        Unsupported languages are ignored with a warning.
        """
        if language not in self.config.GENERAL.SUPPORTED_LANGUAGES:
            logger.warning("Unsupported language requested: '%s'", language)
            return
        self.coordinator.switch_to(language)

    async def translate_document(self) -> CycleReport | None:
        """Translate the attached document into the confirmed language right away."""
        return await self.scheduler.trigger("manual")

    async def translate_text(self, text: str, target_language: str, context: str | None = None) -> TranslationResult | None:
        return await self.orchestrator.translate_text(text, target_language, context)

    def notify_mutation(self) -> None:
        self.scheduler.notify_mutation()

    def notify_navigation(self) -> None:
        self.scheduler.notify_navigation()

    def cache_statistics(self) -> CacheStatistics:
        return self.cache_store.stats()

    def client_statistics(self) -> ClientStatistics:
        return self.request_client.stats()

    def clear_caches(self) -> None:
        """Drop both the local translation cache and the short-lived request cache."""
        self.cache_store.clear()
        self.request_client.clear_cache()
