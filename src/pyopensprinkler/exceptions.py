"""Exception classes for pyopensprinkler."""

from __future__ import annotations

from .properties import ResultCode


class OSPError(Exception):
    """Base exception for all OpenSprinkler errors."""


class OSPConnectionError(OSPError):
    """Raised when the HTTP request to the controller fails."""


class OSPTimeoutError(OSPError, TimeoutError):
    """Raised when the controller does not answer within the request timeout."""


class OSPNotConnectedError(OSPError):
    """Raised when an operation needs the device handshake that has not happened yet."""

    def __init__(self, message: str = "Client is not connected") -> None:
        super().__init__(message)


class OSPNotSupportedByFirmwareError(OSPError):
    """Raised when the controller firmware does not support the requested write."""

    def __init__(
        self,
        message: str = "This action is not supported by the firmware of your controller",
    ) -> None:
        super().__init__(message)


class OSPInvalidEndpointError(OSPError):
    """Raised when a property has no endpoint for the requested direction."""


class OSPInvalidConversionError(OSPError):
    """Raised when a value does not match the declared value type of a property."""


class OSPMissingValueError(OSPError):
    """Raised when a refreshed endpoint did not carry the requested property."""


class OSPStationAlreadyRunningError(OSPError):
    """Raised when a manual run is requested for a station that is already running."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Station {index} already running")


class OSPInvalidRequestError(OSPError):
    """Raised when the controller answers with a result code other than SUCCESS."""

    def __init__(self, result_code: int) -> None:
        self.result_code = result_code
        try:
            name = ResultCode(result_code).name
        except ValueError:
            name = "UNKNOWN"
        super().__init__(f"Request came back with result code: {name} ({result_code})")

    def __repr__(self) -> str:
        return f"OSPInvalidRequestError(result_code={self.result_code!r})"
