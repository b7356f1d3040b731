"""Controller entity for OpenSprinkler.

The controller tracks the device clock, the operation and rain-delay flags
and the station roster. The roster grows the first time the reported
number of boards implies more stations than are known; it never shrinks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .model import DEFAULT_UNLOCK_TIMEOUT, EndpointResponses, PropertyStore, epoch_now
from .properties import STATIONS_PER_BOARD, OwnerKind, PropertyKey
from .station import OSPStation

if TYPE_CHECKING:
    from collections.abc import Callable

    from .model import DeviceApi

_LOGGER = logging.getLogger(__name__)


class OSPController:
    """The controller and its roster of stations."""

    def __init__(
        self,
        device: DeviceApi,
        *,
        unlock_timeout: float = DEFAULT_UNLOCK_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            device: Device used for requests
            unlock_timeout: Seconds a write waits for a refresh to finish
            logger: Optional logger, defaults to the module logger
        """
        self._device = device
        self._unlock_timeout = unlock_timeout
        self._log = logger or _LOGGER
        self._clock_skew = 0
        self._expected_stations = 0
        self._stations: list[OSPStation] = []
        self._station_added_callback: Callable[[OSPStation], None] | None = None
        self._store = PropertyStore(
            OwnerKind.CONTROLLER, device, self, unlock_timeout=unlock_timeout, logger=self._log
        )

    def __repr__(self) -> str:
        return f"OSPController(stations={len(self._stations)}, enabled={self.is_enabled()})"

    @property
    def store(self) -> PropertyStore:
        """Return the controller property store."""
        return self._store

    @property
    def stations(self) -> list[OSPStation]:
        """Return the stations in index order."""
        return self._stations

    @property
    def clock_skew(self) -> int:
        """Return host clock minus device clock, in seconds."""
        return self._clock_skew

    def set_station_added_callback(self, callback: Callable[[OSPStation], None] | None) -> None:
        """Set callback called for every station appended to the roster."""
        self._station_added_callback = callback

    # -- hooks --------------------------------------------------------------

    def prepare_value(self, key: PropertyKey, value: Any) -> Any:
        if key == PropertyKey.RAIN_DELAY:
            return 1 if value >= 1 else 0
        return value

    def on_value_assigned(self, key: PropertyKey, old_value: Any, new_value: Any) -> None:
        if key == PropertyKey.DEVICE_TIME:
            self._clock_skew = epoch_now() - int(new_value)
        elif key == PropertyKey.NUMBER_OF_BOARDS:
            self._expected_stations = int(new_value) * STATIONS_PER_BOARD

    async def after_batch(self, responses: EndpointResponses) -> None:
        if self._expected_stations <= len(self._stations):
            return

        self._log.info(
            "Found %d station boards. Updating station data...",
            self._expected_stations // STATIONS_PER_BOARD,
        )
        # Whole boards only: append after every new station refreshed, then notify
        new_stations: list[OSPStation] = []
        for index in range(len(self._stations), self._expected_stations):
            self._log.debug("Adding new station with index: %d", index)
            station = OSPStation(
                index, self._device, unlock_timeout=self._unlock_timeout, logger=self._log
            )
            station.lock(self._store.is_locked)
            await station.refresh_all(responses)
            new_stations.append(station)

        self._stations.extend(new_stations)
        if self._station_added_callback:
            for station in new_stations:
                self._station_added_callback(station)

    # -- refresh / write ----------------------------------------------------

    async def refresh_all(self, responses: EndpointResponses | None = None) -> EndpointResponses:
        """Refresh the controller, then every known station, in one pass.

        Stations discovered during this pass are refreshed when they are
        created and are not refreshed again.
        """
        known = len(self._stations)
        responses = await self._store.refresh_all(responses)
        for station in self._stations[:known]:
            responses = await station.refresh_all(responses)
        return responses

    def lock(self, value: bool = True) -> None:
        """Set or clear the write lock of the controller and every station."""
        self._store.lock(value)
        for station in self._stations:
            station.lock(value)

    def get_value(self, key: str) -> Any | None:
        """Return a stored property value."""
        return self._store.get_value(key)

    async def write_value(self, key: str, value: Any) -> None:
        """Write a controller property."""
        await self._store.write_value(key, value)

    async def set_enabled(self, value: bool) -> None:
        """Enable or disable controller operation."""
        await self._store.write_value(PropertyKey.OPERATION_ENABLE, 1 if value else 0)

    async def set_rain_delay(self, hours: int) -> None:
        """Set a rain delay of ``hours``; 0 clears it."""
        await self._store.write_value(PropertyKey.RAIN_DELAY, hours)

    # -- queries ------------------------------------------------------------

    def current_device_time(self) -> int:
        """Return the device clock derived from the host clock."""
        value = epoch_now() - self._clock_skew
        self._log.debug("Getting controller time: %d", value)
        return value

    def is_enabled(self) -> bool:
        """Return True if controller operation is enabled."""
        return self._store.get_value(PropertyKey.OPERATION_ENABLE) == 1

    def is_rain_delay_active(self) -> bool:
        """Return True if a rain delay is active."""
        return self._store.get_value(PropertyKey.RAIN_DELAY) == 1

    def is_any_station_active(self) -> bool:
        """Return True if any station bit is set."""
        sbits = self._store.get_value(PropertyKey.STATION_STATUS_BITS)
        if not sbits:
            return False
        value = sum(sbits)
        self._log.debug("Getting controller in use state: %s (sbits: %s)", value, sbits)
        return value > 0

    def get_active_stations(self) -> list[OSPStation]:
        """Return the stations that are not disabled."""
        return [station for station in self._stations if not station.is_disabled()]

    def get_station_by_name(self, name: str) -> OSPStation | None:
        """Return the first station called ``name``."""
        return next((station for station in self._stations if station.name == name), None)

    def get_station_by_index(self, index: int) -> OSPStation | None:
        """Return the station at ``index``, or None if out of range."""
        if 0 <= index < len(self._stations):
            return self._stations[index]
        return None
