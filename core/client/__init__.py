"""Provider client package.

Provides the transport interface, the edge-function transport, retry helpers and the
deduplicating request client.
"""

from core.client.interface import InvalidTranslationError, ProviderTransport, TranslationProviderError
from core.client.request_client import RequestClient
from core.client.retry import RetryExhaustedError, with_retry
from core.client.transport import EdgeFunctionTransport

__all__: list[str] = [
    "EdgeFunctionTransport",
    "InvalidTranslationError",
    "ProviderTransport",
    "RequestClient",
    "RetryExhaustedError",
    "TranslationProviderError",
    "with_retry",
]
