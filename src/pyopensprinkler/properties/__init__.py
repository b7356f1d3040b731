"""Property definitions for the OpenSprinkler HTTP API."""

from .constants import (
    MANUAL_PROGRAM_ID,
    STATIONS_PER_BOARD,
    FirmwareVersion,
    OwnerKind,
    PropertyKey,
    ReadEndpoint,
    ResultCode,
    ValueType,
    WriteEndpoint,
    firmware_name,
)
from .metadata import (
    ALL_PROPERTIES_BY_OWNER,
    PropertyMetadata,
    check_firmware_ranges,
    metadata_for,
    metadata_for_key_across_all_owners,
    read_endpoints_needed_for,
)

__all__ = [
    "ALL_PROPERTIES_BY_OWNER",
    "MANUAL_PROGRAM_ID",
    "STATIONS_PER_BOARD",
    "FirmwareVersion",
    "OwnerKind",
    "PropertyKey",
    "PropertyMetadata",
    "ReadEndpoint",
    "ResultCode",
    "ValueType",
    "WriteEndpoint",
    "check_firmware_ranges",
    "firmware_name",
    "metadata_for",
    "metadata_for_key_across_all_owners",
    "read_endpoints_needed_for",
]
