"""Asynchronous HTTP communication utilities.

This module provides the `AsyncHttp` client used to reach the translation provider and the
remote translation store. It maps the many failure modes of aiohttp onto a small error
hierarchy so that callers can decide what is transient and what is not.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final, Literal, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from aiohttp.client import ClientResponse


__all__: list[str] = ["AsyncCommError", "AsyncCommInvalidContentTypeError", "AsyncCommTimeoutError", "AsyncHttp"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 1.0


class AsyncHttp:
    """Asynchronous HTTP client for making requests and handling responses.

    The aiohttp session is created lazily on the first request (or on entering the context),
    so instances can be constructed outside of a running event loop. Responses are decoded
    by content type through pluggable handlers.

    Args:
        headers (dict[str, str] | None): Headers sent with every request.
    """

    def __init__(self, *, headers: dict[str, str] | None = None) -> None:
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.default_headers: dict[str, str] = dict(headers or {})
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))
        self.list_handlers()

    async def __aenter__(self) -> Self:
        logger.debug("%s entering context", self.__class__.__name__)
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        logger.debug("%s exiting context", self.__class__.__name__)
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Create the aiohttp session if there is no open one.

        Must be called with a running event loop.

        Args:
            suppress_already_log (bool): If True, do not log when the session is already initialized.
        """
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=True, headers=self.default_headers)
            logger.debug("%s session initialized", self.__class__.__name__)
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        """Get the current aiohttp session."""
        if self.__session is None or self.__session.closed:
            msg = "Session is not initialized or has been closed"
            raise RuntimeError(msg)
        return self.__session

    @property
    def is_open(self) -> bool:
        return self.__session is not None and not self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
            logger.info("%s session closed", self.__class__.__name__)

    async def get(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        total_timeout: float = 10.0,
    ) -> Any:
        """Perform an asynchronous HTTP GET request.

        Args:
            url (str): The URL to send the GET request to.
            params (dict[str, str] | None): Optional query parameters.
            headers (dict[str, str] | None): Extra headers for this request.
            total_timeout (float): Total timeout for the request in seconds.

        Returns:
            Any: The decoded response data.
        """
        return await self._request("GET", url=url, params=params, headers=headers, total_timeout=total_timeout)

    async def post(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        data: Any | None = None,
        headers: dict[str, str] | None = None,
        total_timeout: float = 10.0,
    ) -> Any:
        """Perform an asynchronous HTTP POST request with a JSON body.

        Args:
            url (str): The URL to send the POST request to.
            params (dict[str, str] | None): Optional query parameters.
            data (Any | None): JSON-serializable request body.
            headers (dict[str, str] | None): Extra headers for this request.
            total_timeout (float): Total timeout for the request in seconds.

        Returns:
            Any: The decoded response data.
        """
        return await self._request(
            "POST",
            url=url,
            params=params,
            json=data,
            headers=headers,
            total_timeout=total_timeout,
        )

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Decode a response body according to its Content-Type.

        Args:
            resp (ClientResponse): The response object from the aiohttp request.

        Returns:
            Any: The decoded data, or None for an empty body.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the content type
                or the body cannot be decoded by it.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
        logger.debug("'Content-Type': '%s'", content_type)

        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler:
            try:
                return handler(raw)
            except ValueError as err:
                # JSONDecodeError and UnicodeDecodeError are both ValueErrors
                msg: str = f"Malformed '{content_type}' body: {err}"
                raise AsyncCommInvalidContentTypeError(msg) from err

        msg = f"Unknown Content-Type '{content_type}'"
        raise AsyncCommInvalidContentTypeError(msg)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Register a decoder for a content type, replacing any existing one.

        Args:
            content_type (str): The content type to handle (e.g., "application/json").
            handler (Callable[[bytes], Any]): A function that takes bytes and returns the parsed data.
        """
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler
        logger.debug("Added handler for content type '%s'", content_type)

    def list_handlers(self) -> None:
        if not self.content_handlers:
            logger.info("No content type handlers registered")
            return
        logger.debug("Handlers registered for content types '%s'", list(self.content_handlers.keys()))

    async def _request(
        self,
        method: HTTPMethod,
        *,
        url: str,
        total_timeout: float,
        **kwargs: Any,
    ) -> Any:
        """Perform an asynchronous HTTP request.

        Args:
            method (HTTPMethod): The HTTP method to use.
            url (str): The URL to send the request to.
            total_timeout (float): Total timeout in seconds. Zero or negative disables the timeout.
            **kwargs: Additional keyword arguments to pass to the aiohttp request.

        Returns:
            Any: The decoded response data.

        Raises:
            AsyncCommTimeoutError: If the server does not answer in time.
            AsyncCommError: On connection failures and error responses.
        """
        logger.debug("[%s] url=%s timeout=%s", method, url, total_timeout)
        self.initialize_session(suppress_already_log=True)
        kwargs = {key: value for key, value in kwargs.items() if value is not None}

        if total_timeout <= 0:
            _timeout = aiohttp.ClientTimeout(total=None)
        elif total_timeout < CONNECT_TIMEOUT:
            # a connect timeout longer than the total would never apply
            _timeout = aiohttp.ClientTimeout(total=total_timeout)
        else:
            _timeout = aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

        try:
            async with self.session.request(method=method, url=url, timeout=_timeout, **kwargs) as resp:
                return await self.decode_response(resp)

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not running, or the port is closed."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientResponseError as err:
            logger.debug(err)
            msg = "Error response from the server."
            raise AsyncCommError(msg, response=err) from err
        except aiohttp.ClientError as err:
            logger.debug(err)
            msg = f"HTTP client error: {err}"
            raise AsyncCommError(msg) from err


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    Attributes:
        msg (str): Error description, including the HTTP status when one is known.
        status (int | None): HTTP status of an error response, if any.
    """

    def __init__(self, msg: str | BaseException, **kwargs: Any) -> None:
        self.msg: str = str(msg)
        self.status: int | None = None

        rsp: aiohttp.ClientResponseError | None = kwargs.pop("response", None)
        if isinstance(rsp, aiohttp.ClientResponseError):
            self.status = rsp.status
            self.msg = f"{self.msg}: status='{rsp.status}'"

        super().__init__(self.msg)

    @property
    def is_transient(self) -> bool:
        """True unless the server rejected the request with a 4xx status other than 408/429."""
        if self.status is None:
            return True
        return self.status >= 500 or self.status in (408, 429)


class AsyncCommTimeoutError(AsyncCommError):
    """Error raised when an asynchronous communication operation times out."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """Error raised when no handler is registered for a response's content type."""

    @property
    def is_transient(self) -> bool:
        return False
