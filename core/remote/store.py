"""Remote persistent store for translations.

The remote table is shared by every client and treated as eventually consistent; the local
cache stays authoritative during a session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from core.client.transport import backend_headers
from handlers.async_comm import AsyncCommError, AsyncHttp
from models.cache_models import RemoteTranslationRow
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config

__all__: list[str] = [
    "NullRemoteStore",
    "RemoteStoreError",
    "RemoteTranslationStore",
    "RestTranslationStore",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class RemoteStoreError(Exception):
    """The remote translation store could not be read or written."""


class RemoteTranslationStore(ABC):
    """Read/write contract of the remote translation store."""

    @abstractmethod
    async def list_translations(
        self, target_language: str, limit: int, *, newest_first: bool = True
    ) -> list[RemoteTranslationRow]:
        """Fetch stored translations for one language.

        Args:
            target_language (str): Target language code.
            limit (int): Maximum number of rows.
            newest_first (bool): Order by insertion time, newest first.

        Returns:
            list[RemoteTranslationRow]: Stored pairs.

        Raises:
            RemoteStoreError: If the store cannot be read.
        """

    @abstractmethod
    async def upsert(self, original: str, translated: str, target_language: str) -> None:
        """Insert or update one translation.

        Raises:
            RemoteStoreError: If the store cannot be written.
        """

    async def close(self) -> None:  # noqa: B027
        """Release resources. Default: nothing to release."""


class NullRemoteStore(RemoteTranslationStore):
    """Store used when no backend is configured: empty reads, discarded writes."""

    async def list_translations(
        self, target_language: str, limit: int, *, newest_first: bool = True
    ) -> list[RemoteTranslationRow]:
        _ = target_language, limit, newest_first
        return []

    async def upsert(self, original: str, translated: str, target_language: str) -> None:
        _ = original, translated, target_language


class RestTranslationStore(RemoteTranslationStore):
    """PostgREST-style table API over HTTP.

    Reads ``GET {base_url}/rest/v1/{table}`` and upserts with
    ``POST ... Prefer: resolution=merge-duplicates`` on ``(original, target_lang)``.

    Args:
        base_url (str): Backend base URL.
        api_key (str): Backend API key.
        table (str): Table name.
        timeout (float): Total timeout per request in seconds.
        http (AsyncHttp | None): HTTP client to reuse. A new one is created if omitted.
    """

    REST_PATH: ClassVar[str] = "rest/v1"
    CONFLICT_COLUMNS: ClassVar[str] = "original,target_lang"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        table: str = "translation_cache",
        timeout: float = 10.0,
        http: AsyncHttp | None = None,
    ) -> None:
        self._url: str = f"{base_url.rstrip('/')}/{self.REST_PATH}/{table}"
        self._timeout: float = timeout
        self._owns_http: bool = http is None
        self._http: AsyncHttp = http if http is not None else AsyncHttp(headers=backend_headers(api_key))

    @classmethod
    def from_config(cls, config: Config) -> RemoteTranslationStore:
        """Build the store for the configured backend, or a null store when none is configured."""
        if not config.BACKEND.BASE_URL:
            logger.info("No backend configured; remote translation store disabled")
            return NullRemoteStore()
        return cls(
            config.BACKEND.BASE_URL,
            config.BACKEND.API_KEY,
            table=config.BACKEND.CACHE_TABLE,
            timeout=config.BACKEND.TIMEOUT,
        )

    async def list_translations(
        self, target_language: str, limit: int, *, newest_first: bool = True
    ) -> list[RemoteTranslationRow]:
        params: dict[str, str] = {
            "select": "original,translated,target_lang",
            "target_lang": f"eq.{target_language}",
            "order": f"inserted_at.{'desc' if newest_first else 'asc'}",
            "limit": str(limit),
        }
        try:
            data: Any = await self._http.get(url=self._url, params=params, total_timeout=self._timeout)
        except AsyncCommError as err:
            msg: str = f"Failed to list translations for '{target_language}': {err}"
            raise RemoteStoreError(msg) from err

        if not isinstance(data, list):
            msg = f"Unexpected response listing translations: {type(data).__name__}"
            raise RemoteStoreError(msg)

        rows: list[RemoteTranslationRow] = []
        for item in data:
            try:
                rows.append(RemoteTranslationRow.from_dict(item))
            except (KeyError, TypeError, ValueError) as err:
                logger.debug("Skipping malformed remote row: %s", err)
        return rows

    async def upsert(self, original: str, translated: str, target_language: str) -> None:
        row = RemoteTranslationRow(original=original, translated=translated, target_lang=target_language)
        try:
            await self._http.post(
                url=self._url,
                params={"on_conflict": self.CONFLICT_COLUMNS},
                data=row.to_dict(),
                headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                total_timeout=self._timeout,
            )
        except AsyncCommError as err:
            msg: str = f"Failed to upsert translation: {err}"
            raise RemoteStoreError(msg) from err

    async def close(self) -> None:
        if self._owns_http:
            await self._http.close()
