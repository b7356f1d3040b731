"""Device entity for an OpenSprinkler controller.

The device owns the HTTP connection and the firmware version read during
the initial handshake. Every other entity sends its requests through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import OSPNotConnectedError
from .model import DEFAULT_UNLOCK_TIMEOUT, PropertyStore
from .properties import (
    FirmwareVersion,
    OwnerKind,
    PropertyKey,
    ReadEndpoint,
    WriteEndpoint,
    firmware_name,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .connection import OSPConnection

_LOGGER = logging.getLogger(__name__)


class OSPDevice:
    """The controller as seen through its HTTP API."""

    def __init__(
        self,
        connection: OSPConnection,
        *,
        unlock_timeout: float = DEFAULT_UNLOCK_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._connection = connection
        self._log = logger or _LOGGER
        self._connected = False
        self._store = PropertyStore(
            OwnerKind.API, self, unlock_timeout=unlock_timeout, logger=self._log
        )

    def __repr__(self) -> str:
        return (
            f"OSPDevice(host={self._connection.host!r}, "
            f"firmware={self.firmware_version}, connected={self._connected})"
        )

    @property
    def connection(self) -> OSPConnection:
        """Return the HTTP connection."""
        return self._connection

    @property
    def store(self) -> PropertyStore:
        """Return the device property store."""
        return self._store

    @property
    def connected(self) -> bool:
        """Return True once the handshake succeeded."""
        return self._connected

    @property
    def firmware_version(self) -> int | None:
        """Return the encoded firmware version, or None before connect."""
        value = self._store.get_value(PropertyKey.FIRMWARE_VERSION)
        return int(value) if value is not None else None

    async def connect(self) -> None:
        """Read the controller options and record the firmware version.

        Raises:
            OSPNotConnectedError: If the options did not carry a firmware version.
        """
        options = await self._connection.execute(ReadEndpoint.OPTIONS)
        self._store.apply_batch(options)

        firmware = self.firmware_version
        if firmware is None:
            raise OSPNotConnectedError("Controller did not report a firmware version")

        self._log.info("Connected to controller with firmware: %s", firmware_name(firmware))
        if firmware > max(FirmwareVersion):
            self._log.warning(
                "Controller firmware %s is newer than %s, this might result in issues",
                firmware_name(firmware),
                firmware_name(max(FirmwareVersion)),
            )
        self._connected = True

    async def get_endpoint_response(self, endpoint: ReadEndpoint) -> dict[str, Any]:
        """Fetch a read endpoint.

        Raises:
            OSPNotConnectedError: Before a successful connect.
        """
        if not self._connected:
            raise OSPNotConnectedError()
        return await self._connection.execute(endpoint)

    async def write_values(self, endpoint: WriteEndpoint, params: Mapping[str, Any]) -> None:
        """Send a write request.

        Raises:
            OSPNotConnectedError: Before a successful connect.
        """
        if not self._connected:
            raise OSPNotConnectedError()
        await self._connection.execute(endpoint, params)
