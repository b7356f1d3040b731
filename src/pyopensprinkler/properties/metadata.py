"""Property metadata registry.

Each property an entity can hold is described once: its value type, the
endpoints carrying it in each direction, the firmware range supporting it
and optionally the values it may legally take.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import (
    FirmwareVersion,
    OwnerKind,
    PropertyKey,
    ReadEndpoint,
    ValueType,
    WriteEndpoint,
)


@dataclass(frozen=True)
class PropertyMetadata:
    """Static description of a single property."""

    key: PropertyKey
    value_type: ValueType
    minimum_firmware: int
    read_endpoint: ReadEndpoint | None = None
    write_endpoint: WriteEndpoint | None = None
    maximum_firmware: int | None = None  # None means no upper bound
    valid_values: frozenset[int] | None = None

    def supports_firmware(self, version: int) -> bool:
        """Return True if ``version`` lies within the supported range (inclusive)."""
        if version < self.minimum_firmware:
            return False
        return self.maximum_firmware is None or version <= self.maximum_firmware


# api

FIRMWARE_VERSION_PROPERTY = PropertyMetadata(
    key=PropertyKey.FIRMWARE_VERSION,
    value_type=ValueType.NUMBER,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.OPTIONS,
)

# controller

DEVICE_TIME_PROPERTY = PropertyMetadata(
    key=PropertyKey.DEVICE_TIME,
    value_type=ValueType.NUMBER,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.CONTROLLER_VARIABLES,
)

NUMBER_OF_BOARDS_PROPERTY = PropertyMetadata(
    key=PropertyKey.NUMBER_OF_BOARDS,
    value_type=ValueType.NUMBER,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.CONTROLLER_VARIABLES,
)

OPERATION_ENABLE_PROPERTY = PropertyMetadata(
    key=PropertyKey.OPERATION_ENABLE,
    value_type=ValueType.NUMBER,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.CONTROLLER_VARIABLES,
    write_endpoint=WriteEndpoint.CONTROLLER_VARIABLES,
    valid_values=frozenset({0, 1}),
)

STATION_STATUS_PROPERTY = PropertyMetadata(
    key=PropertyKey.STATION_STATUS_BITS,
    value_type=ValueType.NUMBER_ARRAY,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.CONTROLLER_VARIABLES,
)

RAIN_DELAY_PROPERTY = PropertyMetadata(
    key=PropertyKey.RAIN_DELAY,
    value_type=ValueType.NUMBER,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.CONTROLLER_VARIABLES,
    write_endpoint=WriteEndpoint.CONTROLLER_VARIABLES,
)

# station

STATION_NAMES_PROPERTY = PropertyMetadata(
    key=PropertyKey.STATION_NAMES,
    value_type=ValueType.STRING_ARRAY,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.STATION_NAMES_AND_ATTRIBUTES,
)

PROGRAM_STATUS_PROPERTY = PropertyMetadata(
    key=PropertyKey.PROGRAM_STATUS_DATA,
    value_type=ValueType.NUMBER_MATRIX,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.CONTROLLER_VARIABLES,
)

STATION_DISABLED_PROPERTY = PropertyMetadata(
    key=PropertyKey.STATION_DISABLED,
    value_type=ValueType.NUMBER_ARRAY,
    minimum_firmware=FirmwareVersion.FIRMWARE_2_1_0,
    read_endpoint=ReadEndpoint.STATION_NAMES_AND_ATTRIBUTES,
    write_endpoint=WriteEndpoint.STATION_NAMES_AND_ATTRIBUTES,
)


def _table(*properties: PropertyMetadata) -> dict[PropertyKey, PropertyMetadata]:
    return {prop.key: prop for prop in properties}


# Properties tracked per owner kind, in declaration order
ALL_PROPERTIES_BY_OWNER: dict[OwnerKind, dict[PropertyKey, PropertyMetadata]] = {
    OwnerKind.API: _table(
        FIRMWARE_VERSION_PROPERTY,
    ),
    OwnerKind.CONTROLLER: _table(
        DEVICE_TIME_PROPERTY,
        NUMBER_OF_BOARDS_PROPERTY,
        OPERATION_ENABLE_PROPERTY,
        STATION_STATUS_PROPERTY,
        RAIN_DELAY_PROPERTY,
    ),
    OwnerKind.STATION: _table(
        DEVICE_TIME_PROPERTY,
        STATION_NAMES_PROPERTY,
        STATION_DISABLED_PROPERTY,
        STATION_STATUS_PROPERTY,
        PROGRAM_STATUS_PROPERTY,
    ),
}


def metadata_for(kind: OwnerKind, key: str) -> PropertyMetadata | None:
    """Return the metadata of ``key`` for owners of ``kind``, or None."""
    return ALL_PROPERTIES_BY_OWNER.get(kind, {}).get(key)  # type: ignore[call-overload]


def read_endpoints_needed_for(kind: OwnerKind) -> tuple[ReadEndpoint, ...]:
    """Return the distinct read endpoints declared for ``kind``, in declaration order."""
    endpoints: list[ReadEndpoint] = []
    for prop in ALL_PROPERTIES_BY_OWNER.get(kind, {}).values():
        if prop.read_endpoint is not None and prop.read_endpoint not in endpoints:
            endpoints.append(prop.read_endpoint)
    return tuple(endpoints)


def metadata_for_key_across_all_owners(key: str) -> PropertyMetadata | None:
    """Return the first declaration of ``key`` under any owner kind.

    Declarations of the same key under several owner kinds are required to
    agree on the firmware range (see ``check_firmware_ranges``), so the
    owner kind searched first does not matter.
    """
    for properties in ALL_PROPERTIES_BY_OWNER.values():
        prop = properties.get(key)  # type: ignore[call-overload]
        if prop is not None:
            return prop
    return None


def check_firmware_ranges(
    table: dict[OwnerKind, dict[PropertyKey, PropertyMetadata]],
) -> None:
    """Raise ValueError if a key is declared with different firmware ranges.

    The cross-owner lookup has no rule to pick between conflicting ranges.
    """
    seen: dict[PropertyKey, tuple[OwnerKind, int, int | None]] = {}
    for kind, properties in table.items():
        for key, prop in properties.items():
            firmware_range = (prop.minimum_firmware, prop.maximum_firmware)
            if key not in seen:
                seen[key] = (kind, *firmware_range)
                continue
            other_kind, *other_range = seen[key]
            if tuple(other_range) != firmware_range:
                raise ValueError(
                    f"Property {key} declared with firmware range {tuple(other_range)} "
                    f"for {other_kind} and {firmware_range} for {kind}"
                )


check_firmware_ranges(ALL_PROPERTIES_BY_OWNER)
