"""Polling client for OpenSprinkler.

This module ties the pieces together: it performs the device handshake,
then refreshes the controller and its stations on a fixed interval. A
failed refresh pass is logged and retried on the next tick.

Classes:
    OSPConfig: Connection and polling settings
    OSPRefreshMetrics: Counters of refresh passes
    OSPClient: Handshake, polling loop and convenience accessors
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from .connection import DEFAULT_PORT, REQUEST_TIMEOUT, OSPConnection
from .controller import OSPController
from .device import OSPDevice
from .model import DEFAULT_UNLOCK_TIMEOUT

if TYPE_CHECKING:
    import aiohttp

    from .model import EndpointResponses

_LOGGER = logging.getLogger(__name__)

DEFAULT_POLLING_INTERVAL = 30.0  # seconds between refresh passes


@dataclass
class OSPConfig:
    """Settings for one controller."""

    host: str
    password: str
    is_plain: bool = False
    port: int = DEFAULT_PORT
    polling_interval: float = DEFAULT_POLLING_INTERVAL
    request_timeout: float = REQUEST_TIMEOUT
    unlock_timeout: float = DEFAULT_UNLOCK_TIMEOUT

    def __post_init__(self) -> None:
        if not self.password:
            raise ValueError("No password supplied")
        if self.polling_interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {self.polling_interval}")


@dataclass
class OSPRefreshMetrics:
    """Tracks refresh passes for observability."""

    passes_started: int = 0
    passes_completed: int = 0
    passes_failed: int = 0

    def to_dict(self) -> dict[str, int]:
        """Return metrics as a dictionary."""
        return asdict(self)


@dataclass
class _PassContext:
    """Context for tracking a single refresh pass."""

    metrics: OSPRefreshMetrics
    success: bool = field(default=False, init=False)

    def __enter__(self) -> _PassContext:
        self.metrics.passes_started += 1
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: Any) -> None:
        if exc_type is None:
            self.success = True
            self.metrics.passes_completed += 1
        else:
            self.metrics.passes_failed += 1


class OSPClient:
    """Keeps a local mirror of an OpenSprinkler controller up to date.

    Example:
        config = OSPConfig("192.168.1.50", "opendoor", is_plain=True)
        async with OSPClient(config) as client:
            for station in client.controller.stations:
                print(station.name, station.is_in_use())
    """

    def __init__(
        self,
        config: OSPConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Connection and polling settings
            session: Optional aiohttp session owned by the caller
            logger: Optional logger, defaults to the module logger
        """
        self._config = config
        self._log = logger or _LOGGER
        self._connection = OSPConnection(
            config.host,
            config.password,
            is_plain=config.is_plain,
            port=config.port,
            request_timeout=config.request_timeout,
            session=session,
            logger=logger,
        )
        self._device = OSPDevice(
            self._connection, unlock_timeout=config.unlock_timeout, logger=logger
        )
        self._controller = OSPController(
            self._device, unlock_timeout=config.unlock_timeout, logger=logger
        )
        self._metrics = OSPRefreshMetrics()
        self._poll_task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return (
            f"OSPClient(host={self._config.host!r}, connected={self._device.connected}, "
            f"polling={self.polling})"
        )

    @property
    def config(self) -> OSPConfig:
        """Return the configuration."""
        return self._config

    @property
    def device(self) -> OSPDevice:
        """Return the device entity."""
        return self._device

    @property
    def controller(self) -> OSPController:
        """Return the controller entity."""
        return self._controller

    @property
    def metrics(self) -> OSPRefreshMetrics:
        """Return refresh metrics."""
        return self._metrics

    @property
    def polling(self) -> bool:
        """Return True while the polling loop runs."""
        return self._poll_task is not None and not self._poll_task.done()

    async def connect(self) -> None:
        """Perform the handshake, then one full refresh pass.

        Raises:
            OSPNotConnectedError: If the controller reports no firmware version.
            OSPConnectionError: If the controller cannot be reached.
        """
        self._log.info("Connecting to %s...", self._config.host)
        await self._device.connect()
        await self.refresh_all_data()

    async def start(self) -> None:
        """Connect and start polling."""
        await self.connect()
        if not self.polling:
            self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop polling and close the connection."""
        if self._poll_task and not self._poll_task.done():
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
        self._poll_task = None
        await self._connection.close()

    async def __aenter__(self) -> OSPClient:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.stop()

    async def refresh_all_data(self) -> bool:
        """Refresh the controller and every station in one pass.

        Writes are deferred while the pass runs. Errors are logged, not raised.

        Returns:
            True if the pass completed
        """
        self._log.debug("Start full data refresh.")
        context = _PassContext(self._metrics)
        self._controller.lock(True)
        try:
            with context:
                responses: EndpointResponses = {}
                await self._controller.refresh_all(responses)
        except Exception as err:  # noqa: BLE001
            self._log.error("Data refresh could not continue due to error: %s", err)
        finally:
            self._controller.lock(False)
            self._log.debug("Full data refresh ended.")
        if context.success:
            self.on_refreshed(self._controller)
        return context.success

    async def _poll_loop(self) -> None:
        try:
            while True:
                self._log.debug(
                    "Scheduling next data refresh in %s seconds", self._config.polling_interval
                )
                await asyncio.sleep(self._config.polling_interval)
                await self.refresh_all_data()
        except asyncio.CancelledError:
            self._log.debug("Polling cancelled")
            raise

    def is_enabled(self) -> bool:
        """Return True if controller operation is enabled."""
        return self._controller.is_enabled()

    async def set_enabled(self, value: bool) -> None:
        """Enable or disable controller operation."""
        self._log.debug("Setting controller enabled: %s", value)
        try:
            await self._controller.set_enabled(value)
        except Exception as err:
            self._log.error("Unable to set controller to %s, due to error: %s", value, err)
            raise

    # Override this method or assign a callable to handle refreshes
    def on_refreshed(self, controller: OSPController) -> None:
        """Called after every successful refresh pass. Override or replace to handle."""
