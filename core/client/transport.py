"""Edge-function transport for the translation provider."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from core.client.interface import ProviderTransport
from handlers.async_comm import AsyncHttp
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config

__all__: list[str] = ["EdgeFunctionTransport", "backend_headers"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def backend_headers(api_key: str) -> dict[str, str]:
    """Authentication headers for the managed backend. Empty when no key is configured."""
    if not api_key:
        return {}
    return {"apikey": api_key, "Authorization": f"Bearer {api_key}"}


class EdgeFunctionTransport(ProviderTransport):
    """POSTs JSON bodies to ``{base_url}/functions/v1/{endpoint}``.

    Args:
        base_url (str): Backend base URL.
        api_key (str): Backend API key.
        timeout (float): Total timeout per call in seconds.
        http (AsyncHttp | None): HTTP client to reuse. A new one is created if omitted.
    """

    FUNCTIONS_PATH: ClassVar[str] = "functions/v1"

    def __init__(self, base_url: str, api_key: str = "", *, timeout: float = 30.0, http: AsyncHttp | None = None) -> None:
        super().__init__()
        self._base_url: str = base_url.rstrip("/")
        self._timeout: float = timeout
        self._owns_http: bool = http is None
        self._http: AsyncHttp = http if http is not None else AsyncHttp(headers=backend_headers(api_key))

    @staticmethod
    def fetch_transport_name() -> str:
        return "edge_function"

    @classmethod
    def from_config(cls, config: Config) -> EdgeFunctionTransport:
        return cls(config.BACKEND.BASE_URL, config.BACKEND.API_KEY, timeout=config.BACKEND.TIMEOUT)

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self._base_url}/{self.FUNCTIONS_PATH}/{endpoint.strip('/')}"

    async def invoke(self, endpoint: str, body: dict[str, Any]) -> Any:
        url: str = self.endpoint_url(endpoint)
        logger.debug("Invoking edge function: %s", url)
        return await self._http.post(url=url, data=body, total_timeout=self._timeout)

    async def close(self) -> None:
        if self._owns_http:
            await self._http.close()
