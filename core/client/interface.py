"""Abstract base class for translation provider transports and related exceptions.

A transport carries one provider call: an endpoint name and a JSON body in, the decoded
reply out. Concrete transports register themselves by name so that the configured
``BACKEND.TRANSPORT`` can be resolved at start-up.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config

__all__: list[str] = [
    "InvalidTranslationError",
    "ProviderTransport",
    "TranslationProviderError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TranslationProviderError(Exception):
    """An error occurred while talking to the translation provider."""


class InvalidTranslationError(TranslationProviderError):
    """The provider answered, but without a usable translation."""


class ProviderTransport(ABC):
    """Abstract base class for provider transports.

    Attributes:
        registered (ClassVar[dict[str, type[ProviderTransport]]]): Transport classes keyed by their name.
    """

    registered: ClassVar[dict[str, type[ProviderTransport]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        """Register the subclass under its transport name.

        Subclasses returning an empty name (test doubles, for instance) are not registered.
        """
        super().__init_subclass__(**kwargs)
        name: str = cls.fetch_transport_name()
        if not isinstance(name, str) or name == "":
            return

        if name in cls.registered:
            msg: str = f"A transport with the name '{name}' is already registered."
            raise ValueError(msg)

        cls.registered[name] = cls

    @classmethod
    def create(cls, config: Config) -> ProviderTransport:
        """Instantiate the transport selected by ``BACKEND.TRANSPORT``.

        Raises:
            TranslationProviderError: If no transport is registered under that name.
        """
        transport_cls: type[ProviderTransport] | None = cls.registered.get(config.BACKEND.TRANSPORT)
        if transport_cls is None:
            msg: str = f"Unknown transport: '{config.BACKEND.TRANSPORT}'"
            raise TranslationProviderError(msg)
        logger.debug("Using transport '%s'", config.BACKEND.TRANSPORT)
        return transport_cls.from_config(config)

    @staticmethod
    def fetch_transport_name() -> str:
        """Get the name this transport registers under. Empty means unregistered."""
        return ""

    @classmethod
    def from_config(cls, config: Config) -> ProviderTransport:
        _ = config
        return cls()

    @abstractmethod
    async def invoke(self, endpoint: str, body: dict[str, Any]) -> Any:
        """Call a provider endpoint.

        Args:
            endpoint (str): Provider function name.
            body (dict[str, Any]): JSON request body.

        Returns:
            Any: Decoded reply.
        """

    async def close(self) -> None:  # noqa: B027
        """Release transport resources. Default: nothing to release."""
