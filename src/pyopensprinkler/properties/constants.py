"""Keys, endpoints and codes used by the OpenSprinkler HTTP API."""

from enum import IntEnum, StrEnum

# Stations per extension board
STATIONS_PER_BOARD = 8

# Program id the controller reports for a manually started run
MANUAL_PROGRAM_ID = 99


class OwnerKind(StrEnum):
    """Kind of entity holding properties."""

    API = "api"
    CONTROLLER = "controller"
    STATION = "station"
    ZONE = "station"  # synonym


class ReadEndpoint(StrEnum):
    """Paths returning JSON state."""

    CONTROLLER_VARIABLES = "jc"
    OPTIONS = "jo"
    STATION_NAMES_AND_ATTRIBUTES = "jn"


class WriteEndpoint(StrEnum):
    """Paths accepting changes as query parameters."""

    CONTROLLER_VARIABLES = "cv"
    OPTIONS = "co"
    STATION_NAMES_AND_ATTRIBUTES = "cs"
    MANUAL_STATION_RUN = "cm"


class PropertyKey(StrEnum):
    """Property names as they appear in the JSON responses."""

    DEVICE_TIME = "devt"  # (int) device local time, epoch seconds
    NUMBER_OF_BOARDS = "nbrd"  # (int) boards, 8 stations each
    OPERATION_ENABLE = "en"  # (0/1) controller enabled
    STATION_STATUS_BITS = "sbits"  # [int] one running mask per board
    PROGRAM_STATUS_DATA = "ps"  # [[pid, remaining, start]] one row per station
    FIRMWARE_VERSION = "fwv"  # (int) 2.1.x encoded as 210 + x
    RAIN_DELAY = "rd"  # (int) rain delay active, hours when written
    STATION_NAMES = "snames"  # [str]
    STATION_DISABLED = "stn_dis"  # [int] one disabled mask per board


class ValueType(StrEnum):
    """Closed set of value shapes a property may hold."""

    NUMBER = "number"
    NUMBER_ARRAY = "number[]"
    NUMBER_MATRIX = "number[][]"
    STRING_ARRAY = "string[]"


class FirmwareVersion(IntEnum):
    """Known firmware versions, 2.1.x encoded as 210 + x."""

    FIRMWARE_2_1_0 = 210
    FIRMWARE_2_1_1 = 211
    FIRMWARE_2_1_2 = 212
    FIRMWARE_2_1_3 = 213
    FIRMWARE_2_1_4 = 214
    FIRMWARE_2_1_5 = 215
    FIRMWARE_2_1_6 = 216
    FIRMWARE_2_1_7 = 217
    FIRMWARE_2_1_8 = 218
    FIRMWARE_2_1_9 = 219


class ResultCode(IntEnum):
    """Values of the ``result`` field in controller responses."""

    SUCCESS = 1
    UNAUTHORIZED = 2
    MISMATCH = 3
    DATA_MISSING = 16
    OUT_OF_RANGE = 17
    DATA_FORMAT_ERROR = 18
    RF_CODE_ERROR = 19
    PAGE_NOT_FOUND = 32
    NOT_PERMITTED = 48


def firmware_name(version: int) -> str:
    """Return the dotted form of an encoded firmware version (219 -> '2.1.9')."""
    digits = str(int(version))
    return ".".join(digits) if len(digits) == 3 else digits
