"""pyopensprinkler - Python library for OpenSprinkler irrigation controllers.

This library keeps a typed local mirror of an OpenSprinkler controller's
configuration and state, refreshed over its HTTP/JSON API, and validates
writes against the firmware before sending them.

Example usage:
    ```python
    import asyncio
    from pyopensprinkler import OSPClient, OSPConfig

    async def main():
        config = OSPConfig("192.168.1.50", "opendoor", is_plain=True)
        async with OSPClient(config) as client:
            for station in client.controller.stations:
                print(f"{station.name}: {station.is_in_use()}")
            await client.controller.stations[0].manual_start(120)

    asyncio.run(main())
    ```
"""

import logging

from .client import OSPClient, OSPConfig, OSPRefreshMetrics
from .connection import OSPConnection, hash_password
from .controller import OSPController
from .device import OSPDevice
from .exceptions import (
    OSPConnectionError,
    OSPError,
    OSPInvalidConversionError,
    OSPInvalidEndpointError,
    OSPInvalidRequestError,
    OSPMissingValueError,
    OSPNotConnectedError,
    OSPNotSupportedByFirmwareError,
    OSPStationAlreadyRunningError,
    OSPTimeoutError,
)
from .model import EndpointResponses, PropertyHooks, PropertyStore
from .properties import (
    STATIONS_PER_BOARD,
    FirmwareVersion,
    OwnerKind,
    PropertyKey,
    PropertyMetadata,
    ReadEndpoint,
    ResultCode,
    ValueType,
    WriteEndpoint,
    firmware_name,
    metadata_for,
    metadata_for_key_across_all_owners,
    read_endpoints_needed_for,
)
from .station import OSPStation, Zone

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"

__all__ = [
    # Version
    "__version__",
    # Client classes
    "OSPClient",
    "OSPConfig",
    "OSPConnection",
    "OSPRefreshMetrics",
    "hash_password",
    # Entities
    "EndpointResponses",
    "OSPController",
    "OSPDevice",
    "OSPStation",
    "PropertyHooks",
    "PropertyStore",
    "Zone",
    # Exceptions
    "OSPConnectionError",
    "OSPError",
    "OSPInvalidConversionError",
    "OSPInvalidEndpointError",
    "OSPInvalidRequestError",
    "OSPMissingValueError",
    "OSPNotConnectedError",
    "OSPNotSupportedByFirmwareError",
    "OSPStationAlreadyRunningError",
    "OSPTimeoutError",
    # Properties
    "STATIONS_PER_BOARD",
    "FirmwareVersion",
    "OwnerKind",
    "PropertyKey",
    "PropertyMetadata",
    "ReadEndpoint",
    "ResultCode",
    "ValueType",
    "WriteEndpoint",
    "firmware_name",
    "metadata_for",
    "metadata_for_key_across_all_owners",
    "read_endpoints_needed_for",
]
