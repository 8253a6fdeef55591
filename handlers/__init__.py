"""Document and network handling utilities.

This package provides the asynchronous HTTP client used for every backend call and the
writer that applies translations to a parsed document.
"""

from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp
from handlers.dom_writer import DomWriter, LedgerRecord, TranslationLedger

__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "DomWriter",
    "LedgerRecord",
    "TranslationLedger",
]
