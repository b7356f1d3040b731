"""Pytest fixtures for pyopensprinkler tests."""

import copy
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from pyopensprinkler import (
    OSPController,
    OSPDevice,
    ReadEndpoint,
)

DEVICE_TIME = 1_700_000_000


def make_controller_variables(**overrides: Any) -> dict[str, Any]:
    """Return a 'jc' response for a two board controller."""
    data: dict[str, Any] = {
        "devt": DEVICE_TIME,
        "nbrd": 2,
        "en": 1,
        "rd": 0,
        "rs": 0,
        "rdst": 0,
        "loc": "Boston,MA",
        "sbits": [0, 0, 0],
        "ps": [[0, 0, 0] for _ in range(16)],
        "lrun": [0, 0, 0, 0],
    }
    data.update(overrides)
    return data


def make_station_names(**overrides: Any) -> dict[str, Any]:
    """Return a 'jn' response for a two board controller."""
    data: dict[str, Any] = {
        "snames": [f"S{i + 1:02d}" for i in range(16)],
        "ignore_rain": [0, 0],
        "masop": [255, 255],
        "stn_dis": [0, 0],
        "maxlen": 32,
    }
    data.update(overrides)
    return data


def make_options(**overrides: Any) -> dict[str, Any]:
    """Return a 'jo' response."""
    data: dict[str, Any] = {"fwv": 219, "tz": 48, "ext": 1, "hwv": 30, "sdt": 0}
    data.update(overrides)
    return data


@pytest.fixture
def responses() -> dict[str, dict[str, Any]]:
    """Return the responses served per read endpoint, editable by tests."""
    return {
        ReadEndpoint.OPTIONS: make_options(),
        ReadEndpoint.CONTROLLER_VARIABLES: make_controller_variables(),
        ReadEndpoint.STATION_NAMES_AND_ATTRIBUTES: make_station_names(),
    }


@pytest.fixture
def mock_connection(responses: dict[str, dict[str, Any]]) -> MagicMock:
    """Create a connection whose execute() serves ``responses``.

    Write endpoints answer with a success result.
    """

    async def execute(endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if endpoint in responses:
            return copy.deepcopy(responses[endpoint])
        return {"result": 1}

    connection = MagicMock()
    connection.host = "192.168.1.50"
    connection.execute = AsyncMock(side_effect=execute)
    return connection


@pytest.fixture
async def device(mock_connection: MagicMock) -> OSPDevice:
    """Create a device that completed the handshake."""
    device = OSPDevice(mock_connection, unlock_timeout=0.2)
    await device.connect()
    mock_connection.execute.reset_mock()
    return device


@pytest.fixture
async def controller(device: OSPDevice, mock_connection: MagicMock) -> OSPController:
    """Create a controller with a discovered two board roster."""
    controller = OSPController(device, unlock_timeout=0.2)
    await controller.refresh_all({})
    mock_connection.execute.reset_mock()
    return controller


def endpoints_called(connection: MagicMock) -> list[str]:
    """Return the endpoints requested through ``connection``, in order."""
    return [call.args[0] for call in connection.execute.call_args_list]
