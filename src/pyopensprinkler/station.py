"""Station (zone) entity.

Stations are numbered from 0 and grouped in boards of 8. Per-board
properties hold one mask word per board; station ``i`` is bit ``i % 8`` of
word ``i // 8``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .exceptions import OSPStationAlreadyRunningError
from .model import DEFAULT_UNLOCK_TIMEOUT, EndpointResponses, PropertyStore, epoch_now
from .properties import (
    MANUAL_PROGRAM_ID,
    STATIONS_PER_BOARD,
    OwnerKind,
    PropertyKey,
    WriteEndpoint,
)

if TYPE_CHECKING:
    from .model import DeviceApi

_LOGGER = logging.getLogger(__name__)

STOPPED_PROGRAM_STATUS = [0, 0, 0]


def board_and_bit(index: int) -> tuple[int, int]:
    """Return the (board, bit) position of a station index."""
    return divmod(index, STATIONS_PER_BOARD)


def mask_bit(masks: list[int] | None, index: int) -> bool:
    """Return the bit of station ``index`` in a per-board mask list."""
    board, bit = board_and_bit(index)
    if not masks or len(masks) <= board:
        return False
    return bool((int(masks[board]) >> bit) & 1)


def with_mask_bit(masks: list[int] | None, index: int, value: bool) -> list[int]:
    """Return a copy of ``masks`` with the bit of station ``index`` set or cleared."""
    board, bit = board_and_bit(index)
    result = [int(word) for word in masks or []]
    result.extend([0] * (board + 1 - len(result)))
    if value:
        result[board] |= 1 << bit
    else:
        result[board] &= ~(1 << bit)
    return result


class OSPStation:
    """A single output station of the controller."""

    def __init__(
        self,
        index: int,
        device: DeviceApi,
        *,
        unlock_timeout: float = DEFAULT_UNLOCK_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize a station.

        Args:
            index: 0-based station index
            device: Device used for requests
            unlock_timeout: Seconds a write waits for a refresh to finish
            logger: Optional logger, defaults to the module logger
        """
        self._index = index
        self._log = logger or _LOGGER
        self._clock_skew = 0
        self._watering_end_time: int | None = None
        self._store = PropertyStore(
            OwnerKind.STATION, device, self, unlock_timeout=unlock_timeout, logger=self._log
        )

    def __repr__(self) -> str:
        return f"OSPStation(index={self._index}, name={self.name!r})"

    @property
    def index(self) -> int:
        """Return the 0-based station index."""
        return self._index

    @property
    def store(self) -> PropertyStore:
        """Return the station property store."""
        return self._store

    @property
    def board(self) -> int:
        """Return the board this station belongs to."""
        return board_and_bit(self._index)[0]

    @property
    def name(self) -> str | None:
        """Return the station name reported by the controller."""
        names = self._store.get_value(PropertyKey.STATION_NAMES)
        if names and len(names) > self._index:
            return str(names[self._index])
        return None

    @property
    def clock_skew(self) -> int:
        """Return host clock minus device clock, in seconds."""
        return self._clock_skew

    # -- hooks --------------------------------------------------------------

    def prepare_value(self, key: PropertyKey, value: Any) -> Any:
        self._expire_watering_end_time()
        return value

    def on_value_assigned(self, key: PropertyKey, old_value: Any, new_value: Any) -> None:
        if key == PropertyKey.DEVICE_TIME:
            self._clock_skew = epoch_now() - int(new_value)
        elif key == PropertyKey.PROGRAM_STATUS_DATA:
            self._update_watering_end_time(new_value)

    async def after_batch(self, responses: EndpointResponses) -> None:
        return None

    def _expire_watering_end_time(self) -> None:
        if self._watering_end_time is not None and self._watering_end_time <= epoch_now():
            self._watering_end_time = None

    def _update_watering_end_time(self, program_status: list[list[int]]) -> None:
        if len(program_status) <= self._index or len(program_status[self._index]) < 3:
            return
        _program_id, remaining, start = program_status[self._index][:3]
        # A zeroed row keeps the end time computed from an earlier sample
        if remaining and start:
            self._watering_end_time = int(start + remaining + self._clock_skew)

    # -- queries ------------------------------------------------------------

    def get_value(self, key: str) -> Any | None:
        """Return a stored property value."""
        return self._store.get_value(key)

    def is_disabled(self) -> bool:
        """Return True if the station is disabled on the controller."""
        value = mask_bit(self._store.get_value(PropertyKey.STATION_DISABLED), self._index)
        self._log.debug("Station %s (%d) disabled flag: %s", self.name, self._index, value)
        return value

    def is_in_use(self) -> bool:
        """Return True if the station is currently running."""
        sbits = self._store.get_value(PropertyKey.STATION_STATUS_BITS)
        value = mask_bit(sbits, self._index)
        self._log.debug("Station %s in use state: %s (sbits: %s)", self.name, value, sbits)
        return value

    def get_watering_end_time(self) -> int:
        """Return the host epoch time the current run ends, or 0."""
        self._expire_watering_end_time()
        return self._watering_end_time or 0

    def remaining_watering_seconds(self) -> int:
        """Return the seconds left in the current run, or 0 when idle."""
        end_time = self.get_watering_end_time()
        if not end_time or not self.is_in_use():
            return 0
        return max(0, end_time - epoch_now())

    # -- refresh / write ----------------------------------------------------

    async def refresh_all(self, responses: EndpointResponses | None = None) -> EndpointResponses:
        """Refresh every station property, reusing responses of this pass."""
        return await self._store.refresh_all(responses)

    def lock(self, value: bool = True) -> None:
        """Set or clear the write lock of this station."""
        self._store.lock(value)

    async def set_disabled(self, value: bool) -> None:
        """Enable or disable the station.

        The disabled masks are read fresh from the controller; the board's mask
        word is only written if this station's bit changes.
        """
        masks = await self._store.refresh_one(PropertyKey.STATION_DISABLED)
        if mask_bit(masks, self._index) == value:
            self._log.debug("Station %d disabled flag already %s", self._index, value)
            return

        updated = with_mask_bit(masks, self._index, value)
        board = self.board
        await self._store.write_value(
            PropertyKey.STATION_DISABLED,
            updated,
            params={f"d{board}": updated[board]},
        )

    async def manual_start(self, duration: int, stop: bool = False) -> None:
        """Run the station for ``duration`` seconds, or stop it.

        Raises:
            ValueError: If ``duration`` is not positive when starting.
            OSPStationAlreadyRunningError: If the station is already running.
        """
        if duration <= 0 and not stop:
            raise ValueError(f"Duration must be positive, got {duration}")

        await self._store.refresh_one(PropertyKey.STATION_STATUS_BITS)
        if not stop and self.is_in_use():
            raise OSPStationAlreadyRunningError(self._index)

        await self._store.send_command(
            WriteEndpoint.MANUAL_STATION_RUN,
            {
                "sid": self._index,
                "en": 0 if stop else 1,
                "t": 0 if stop else duration,
            },
        )

        sbits = self._store.get_value(PropertyKey.STATION_STATUS_BITS)
        self._store.set_value_from_source(
            PropertyKey.STATION_STATUS_BITS, with_mask_bit(sbits, self._index, not stop)
        )
        row = (
            list(STOPPED_PROGRAM_STATUS)
            if stop
            else [MANUAL_PROGRAM_ID, duration, epoch_now() - self._clock_skew]
        )
        self._store.set_value_from_source(
            PropertyKey.PROGRAM_STATUS_DATA, self._with_program_status(row)
        )
        if stop:
            self._log.debug("Station %d stopped", self._index)
        else:
            self._log.debug("Station %d started for %ds", self._index, duration)

    async def stop(self) -> None:
        """Stop the station."""
        await self.manual_start(0, stop=True)

    def _with_program_status(self, row: list[int]) -> list[list[int]]:
        current = self._store.get_value(PropertyKey.PROGRAM_STATUS_DATA) or []
        matrix = [list(entry) for entry in current]
        while len(matrix) <= self._index:
            matrix.append(list(STOPPED_PROGRAM_STATUS))
        matrix[self._index] = row
        return matrix


# A zone is the same thing as a station
Zone = OSPStation
