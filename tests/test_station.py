"""Tests for OSPStation."""

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest

from pyopensprinkler import (
    OSPController,
    OSPDevice,
    OSPStation,
    OSPStationAlreadyRunningError,
    PropertyKey,
    ReadEndpoint,
    WriteEndpoint,
    Zone,
)
from pyopensprinkler.station import board_and_bit, mask_bit, with_mask_bit

from .conftest import DEVICE_TIME, endpoints_called


@pytest.fixture
def clock() -> Iterator[MagicMock]:
    """Freeze the host clock at DEVICE_TIME; tests move it via return_value."""
    with (
        patch("pyopensprinkler.station.epoch_now", return_value=DEVICE_TIME) as mock_now,
        patch("pyopensprinkler.controller.epoch_now", new=mock_now),
    ):
        yield mock_now


@pytest.fixture
def station(device: OSPDevice, clock: MagicMock) -> OSPStation:
    """Create station 3 with an in-sync clock."""
    station = OSPStation(3, device)
    station.store.set_value_from_source(PropertyKey.DEVICE_TIME, DEVICE_TIME)
    return station


def program_status(index: int, row: list[int], size: int = 16) -> list[list[int]]:
    """Return a program status matrix with ``row`` at ``index``."""
    matrix = [[0, 0, 0] for _ in range(size)]
    matrix[index] = row
    return matrix


class TestBitfields:
    """Tests for board/bit decoding."""

    @pytest.mark.parametrize(
        ("index", "expected"),
        [(0, (0, 0)), (7, (0, 7)), (8, (1, 0)), (15, (1, 7)), (17, (2, 1))],
    )
    def test_board_and_bit(self, index, expected):
        """Test index to (board, bit) mapping."""
        assert board_and_bit(index) == expected

    def test_mask_bit(self):
        """Test reading a station bit from per-board masks."""
        masks = [0b00000001, 0b10000000]

        assert mask_bit(masks, 0) is True
        assert mask_bit(masks, 1) is False
        assert mask_bit(masks, 8) is False
        assert mask_bit(masks, 15) is True

    def test_mask_bit_missing_board(self):
        """Test a board beyond the masks reads as clear."""
        assert mask_bit([255], 8) is False
        assert mask_bit(None, 0) is False
        assert mask_bit([], 0) is False

    def test_with_mask_bit(self):
        """Test setting and clearing a bit returns a new list."""
        masks = [0, 0]

        updated = with_mask_bit(masks, 9, True)

        assert updated == [0, 2]
        assert masks == [0, 0]
        assert with_mask_bit(updated, 9, False) == [0, 0]

    def test_with_mask_bit_extends(self):
        """Test missing boards are padded with zeros."""
        assert with_mask_bit([1], 16, True) == [1, 0, 1]


class TestStationQueries:
    """Tests for station flags and names."""

    def test_name(self, controller: OSPController):
        """Test the name comes from the station names array."""
        assert controller.stations[0].name == "S01"
        assert controller.stations[15].name == "S16"

    def test_name_missing(self, device: OSPDevice):
        """Test a station without names."""
        assert OSPStation(3, device).name is None

    def test_is_disabled(self, station: OSPStation):
        """Test the disabled flag of station 3."""
        station.store.set_value_from_source("stn_dis", [0b00001000, 0])
        assert station.is_disabled() is True

        station.store.set_value_from_source("stn_dis", [0b11110111, 255])
        assert station.is_disabled() is False

    def test_is_in_use(self, station: OSPStation):
        """Test the in-use flag of station 3."""
        assert station.is_in_use() is False

        station.store.set_value_from_source("sbits", [0b00001000, 0, 0])
        assert station.is_in_use() is True

    def test_second_board(self, controller: OSPController):
        """Test station 15 reads bit 7 of board 1."""
        station = controller.stations[15]
        station.store.set_value_from_source("sbits", [0, 0b10000000, 0])

        assert station.board == 1
        assert station.is_in_use() is True
        assert controller.stations[7].is_in_use() is False

    def test_zone_alias(self):
        """Test Zone is the station class."""
        assert Zone is OSPStation


class TestWateringTimer:
    """Tests for the watering end time."""

    def test_end_time_from_program_status(self, station: OSPStation):
        """Test the end time is start plus remaining seconds."""
        station.store.set_value_from_source("ps", program_status(3, [1, 600, DEVICE_TIME - 60]))

        assert station.get_watering_end_time() == DEVICE_TIME + 540

    def test_end_time_uses_clock_skew(self, station: OSPStation, clock: MagicMock):
        """Test device timestamps are shifted to the host clock."""
        station.store.set_value_from_source("devt", DEVICE_TIME - 100)
        assert station.clock_skew == 100

        station.store.set_value_from_source("ps", program_status(3, [1, 60, DEVICE_TIME - 100]))

        assert station.get_watering_end_time() == DEVICE_TIME + 60

    def test_other_station_row_ignored(self, station: OSPStation):
        """Test only this station's row is used."""
        station.store.set_value_from_source("ps", program_status(2, [1, 600, DEVICE_TIME]))

        assert station.get_watering_end_time() == 0

    def test_short_matrix_ignored(self, station: OSPStation):
        """Test a matrix without a row for this station."""
        station.store.set_value_from_source("ps", [[1, 600, DEVICE_TIME]])

        assert station.get_watering_end_time() == 0

    def test_remaining_seconds_countdown(self, station: OSPStation, clock: MagicMock):
        """Test the countdown to the end of a run."""
        station.store.set_value_from_source("sbits", [0b00001000, 0, 0])
        station.store.set_value_from_source("ps", program_status(3, [1, 10, DEVICE_TIME]))

        assert station.remaining_watering_seconds() == 10

        clock.return_value = DEVICE_TIME + 4
        assert station.remaining_watering_seconds() == 6

        clock.return_value = DEVICE_TIME + 10
        assert station.remaining_watering_seconds() == 0

        clock.return_value = DEVICE_TIME + 11
        station.store.set_value_from_source("sbits", [0, 0, 0])
        assert station.is_in_use() is False
        assert station.remaining_watering_seconds() == 0
        assert station.get_watering_end_time() == 0

    def test_remaining_seconds_not_in_use(self, station: OSPStation):
        """Test an end time without the in-use bit reports zero."""
        station.store.set_value_from_source("ps", program_status(3, [1, 10, DEVICE_TIME]))

        assert station.get_watering_end_time() == DEVICE_TIME + 10
        assert station.remaining_watering_seconds() == 0

    def test_zeroed_row_keeps_end_time(self, station: OSPStation):
        """Test a zeroed row does not cancel a known end time."""
        station.store.set_value_from_source("ps", program_status(3, [1, 300, DEVICE_TIME]))
        station.store.set_value_from_source("ps", program_status(3, [0, 0, 0]))

        assert station.get_watering_end_time() == DEVICE_TIME + 300

    def test_expired_end_time_cleared(self, station: OSPStation, clock: MagicMock):
        """Test an expired end time stays absent until a new sample."""
        station.store.set_value_from_source("ps", program_status(3, [1, 30, DEVICE_TIME]))

        clock.return_value = DEVICE_TIME + 31
        station.store.set_value_from_source("ps", program_status(3, [0, 0, 0]))
        assert station.get_watering_end_time() == 0

        station.store.set_value_from_source("ps", program_status(3, [2, 30, DEVICE_TIME + 31]))
        assert station.get_watering_end_time() == DEVICE_TIME + 61


class TestSetDisabled:
    """Tests for set_disabled."""

    @pytest.mark.asyncio
    async def test_disable(
        self, controller: OSPController, mock_connection: MagicMock, clock: MagicMock
    ):
        """Test disabling writes the board's mask word."""
        station = controller.stations[9]

        await station.set_disabled(True)

        assert endpoints_called(mock_connection) == [
            ReadEndpoint.STATION_NAMES_AND_ATTRIBUTES,
            WriteEndpoint.STATION_NAMES_AND_ATTRIBUTES,
        ]
        assert mock_connection.execute.call_args.args[1] == {"d1": 2}
        assert station.get_value(PropertyKey.STATION_DISABLED) == [0, 2]
        assert station.is_disabled() is True

    @pytest.mark.asyncio
    async def test_enable_keeps_other_bits(
        self, controller: OSPController, mock_connection: MagicMock, responses, clock: MagicMock
    ):
        """Test enabling clears only this station's bit."""
        responses[ReadEndpoint.STATION_NAMES_AND_ATTRIBUTES]["stn_dis"] = [0b00001010, 0]
        station = controller.stations[3]

        await station.set_disabled(False)

        assert mock_connection.execute.call_args.args == ("cs", {"d0": 0b00000010})
        assert station.is_disabled() is False
        assert controller.stations[1].get_value("stn_dis") == [0, 0]

    @pytest.mark.asyncio
    async def test_no_change_no_write(
        self, controller: OSPController, mock_connection: MagicMock, responses, clock: MagicMock
    ):
        """Test nothing is written if the bit already matches."""
        responses[ReadEndpoint.STATION_NAMES_AND_ATTRIBUTES]["stn_dis"] = [0b00001000, 0]

        await controller.stations[3].set_disabled(True)

        assert endpoints_called(mock_connection) == [ReadEndpoint.STATION_NAMES_AND_ATTRIBUTES]
        assert controller.stations[3].is_disabled() is True


class TestManualStart:
    """Tests for manual_start and stop."""

    @pytest.mark.asyncio
    async def test_start_idle_station(
        self, controller: OSPController, mock_connection: MagicMock, clock: MagicMock
    ):
        """Test starting marks the station running without a poll."""
        station = controller.stations[3]

        await station.manual_start(120)

        assert endpoints_called(mock_connection) == [
            ReadEndpoint.CONTROLLER_VARIABLES,
            WriteEndpoint.MANUAL_STATION_RUN,
        ]
        assert mock_connection.execute.call_args.args[1] == {"sid": 3, "en": 1, "t": 120}
        assert station.is_in_use() is True
        assert station.get_value("ps")[3] == [99, 120, DEVICE_TIME]
        assert station.remaining_watering_seconds() == 120

    @pytest.mark.asyncio
    async def test_start_running_station(
        self, controller: OSPController, mock_connection: MagicMock, responses, clock: MagicMock
    ):
        """Test starting a running station fails."""
        responses[ReadEndpoint.CONTROLLER_VARIABLES]["sbits"] = [0b00001000, 0, 0]

        with pytest.raises(OSPStationAlreadyRunningError):
            await controller.stations[3].manual_start(120)

        assert endpoints_called(mock_connection) == [ReadEndpoint.CONTROLLER_VARIABLES]

    @pytest.mark.asyncio
    async def test_start_needs_positive_duration(
        self, controller: OSPController, mock_connection: MagicMock
    ):
        """Test a zero duration start is refused before any request."""
        with pytest.raises(ValueError):
            await controller.stations[0].manual_start(0)

        mock_connection.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_stop(
        self, controller: OSPController, mock_connection: MagicMock, responses, clock: MagicMock
    ):
        """Test stopping clears the running state locally."""
        responses[ReadEndpoint.CONTROLLER_VARIABLES]["sbits"] = [0b00001000, 0, 0]
        responses[ReadEndpoint.CONTROLLER_VARIABLES]["ps"] = program_status(
            3, [1, 300, DEVICE_TIME]
        )
        station = controller.stations[3]

        await station.stop()

        assert mock_connection.execute.call_args.args == ("cm", {"sid": 3, "en": 0, "t": 0})
        assert station.is_in_use() is False
        assert station.get_value("ps")[3] == [0, 0, 0]
        assert station.remaining_watering_seconds() == 0
