"""Asyncio HTTP connection for OpenSprinkler controllers.

This module provides the transport used by every entity: it turns a
logical endpoint plus query parameters into a GET request against the
controller and returns the decoded JSON object.

Features:
- aiohttp ClientSession, created lazily or injected by the caller
- orjson decoding of the response body
- Shared secret sent as the ``pw`` query parameter (MD5 hex digest)
- Result-code checking of the JSON envelope
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any

import aiohttp
import orjson

from .exceptions import (
    OSPConnectionError,
    OSPInvalidConversionError,
    OSPInvalidRequestError,
    OSPTimeoutError,
)
from .properties import ResultCode

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER = logging.getLogger(__name__)

# Connection configuration
DEFAULT_PORT = 80
REQUEST_TIMEOUT = 30.0  # seconds to wait for a response
CONNECT_TIMEOUT = 2.5  # seconds to wait for the TCP connection

PASSWORD_PARAM = "pw"
RESULT_FIELD = "result"


def hash_password(password: str) -> str:
    """Return the MD5 hex digest the controller expects as its password."""
    return hashlib.md5(password.encode()).hexdigest()  # noqa: S324


class OSPConnection:
    """HTTP connection to an OpenSprinkler controller.

    Example:
        async with OSPConnection("192.168.1.50", "opendoor", is_plain=True) as conn:
            options = await conn.execute("jo")
            print(options["fwv"])
    """

    def __init__(
        self,
        host: str,
        password: str,
        *,
        is_plain: bool = False,
        port: int = DEFAULT_PORT,
        request_timeout: float = REQUEST_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize connection configuration.

        Args:
            host: IP address or hostname of the controller
            password: Device password, plain or already MD5 hashed
            is_plain: True if ``password`` must be hashed before use
            port: HTTP port (default: 80)
            request_timeout: Seconds to wait for a response (default: 30)
            session: Optional aiohttp session owned by the caller
            logger: Optional logger, defaults to the module logger
        """
        self._host = host
        self._port = port
        self._password_hash = hash_password(password) if is_plain else password
        self._timeout = aiohttp.ClientTimeout(total=request_timeout, connect=CONNECT_TIMEOUT)
        self._session = session
        self._owns_session = session is None
        self._log = logger or _LOGGER

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"OSPConnection(host={self._host!r}, port={self._port})"

    @property
    def host(self) -> str:
        """Return the host address."""
        return self._host

    @property
    def port(self) -> int:
        """Return the port number."""
        return self._port

    @property
    def base_url(self) -> str:
        """Return the URL every endpoint path is appended to."""
        return f"http://{self._host}:{self._port}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this connection created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> OSPConnection:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _build_params(self, params: Mapping[str, Any] | None) -> dict[str, str]:
        query = {PASSWORD_PARAM: self._password_hash}
        for key, value in (params or {}).items():
            if isinstance(value, list | tuple | dict):
                raise OSPInvalidConversionError(
                    f"Parameter {key} must be a scalar, got {type(value).__name__}"
                )
            query[key] = value if isinstance(value, str) else str(value)
        return query

    async def execute(
        self,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON object.

        Args:
            endpoint: Endpoint path (e.g., "jc", "cv")
            params: Query parameters; values are sent as their string form

        Returns:
            The response JSON object.

        Raises:
            OSPConnectionError: If the request fails or the status is not 2xx.
            OSPTimeoutError: If no response arrives within the timeout.
            OSPInvalidRequestError: If the controller reports a failure result code.
            OSPInvalidConversionError: If a parameter value is a list or mapping.
        """
        if params:
            self._log.debug("Request: endpoint is %s, parameters are %s", endpoint, dict(params))
        else:
            self._log.debug("Request: endpoint is %s", endpoint)

        url = f"{self.base_url}/{endpoint}"
        try:
            async with self._get_session().get(
                url, params=self._build_params(params), timeout=self._timeout
            ) as response:
                if not 200 <= response.status <= 299:
                    raise OSPConnectionError(
                        f"Request could not be executed. Response code: {response.status}"
                    )
                body = await response.read()
        except TimeoutError as err:
            self._log.error("Request %s timed out after %ss", endpoint, self._timeout.total)
            raise OSPTimeoutError(f"Request {endpoint} timed out") from err
        except aiohttp.ClientError as err:
            raise OSPConnectionError(f"Request {endpoint} failed: {err}") from err

        try:
            result: dict[str, Any] = orjson.loads(body)
        except orjson.JSONDecodeError as err:
            self._log.error("Invalid JSON received: %s", err)
            raise OSPConnectionError(f"Invalid JSON: {err}") from err
        if not isinstance(result, dict):
            raise OSPConnectionError(f"Unexpected response from {endpoint}: {result!r}")

        self._log.debug("Got response: %s", result)

        code = result.get(RESULT_FIELD)
        if code is not None and code != ResultCode.SUCCESS:
            raise OSPInvalidRequestError(code)
        return result
