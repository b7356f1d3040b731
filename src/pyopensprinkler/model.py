"""Typed property store shared by every OpenSprinkler entity.

This module provides the store used by the device, the controller and each
station to hold a local mirror of the controller's state. Reads and writes
are validated against the property metadata registry before any request is
sent, and bulk refreshes share one response cache per polling pass.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Protocol, assert_never

from .exceptions import (
    OSPInvalidConversionError,
    OSPInvalidEndpointError,
    OSPMissingValueError,
    OSPNotConnectedError,
    OSPNotSupportedByFirmwareError,
)
from .properties import (
    FirmwareVersion,
    OwnerKind,
    PropertyKey,
    PropertyMetadata,
    ReadEndpoint,
    ValueType,
    WriteEndpoint,
    firmware_name,
    metadata_for,
    metadata_for_key_across_all_owners,
    read_endpoints_needed_for,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER = logging.getLogger(__name__)

# Seconds a writer waits for a refresh pass to release the write lock
DEFAULT_UNLOCK_TIMEOUT = 5.0

# Responses fetched during one refresh pass, keyed by endpoint
EndpointResponses = dict[ReadEndpoint, dict[str, Any]]


def epoch_now() -> int:
    """Return the host clock in whole epoch seconds."""
    return int(time.time())


class DeviceApi(Protocol):
    """What a store needs from the device it mirrors."""

    @property
    def firmware_version(self) -> int | None: ...

    async def get_endpoint_response(self, endpoint: ReadEndpoint) -> dict[str, Any]: ...

    async def write_values(self, endpoint: WriteEndpoint, params: Mapping[str, Any]) -> None: ...


class PropertyHooks(Protocol):
    """Per-kind behaviour plugged into a PropertyStore."""

    def prepare_value(self, key: PropertyKey, value: Any) -> Any:
        """Return the value to store for ``key``, possibly normalised."""
        ...

    def on_value_assigned(self, key: PropertyKey, old_value: Any, new_value: Any) -> None:
        """Derive additional state once ``key`` holds ``new_value``."""
        ...

    async def after_batch(self, responses: EndpointResponses) -> None:
        """Run follow-up work needing I/O once a response has been applied."""
        ...


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def matches_value_type(value_type: ValueType, value: Any) -> bool:
    """Return True if ``value`` has the runtime shape declared by ``value_type``."""
    match value_type:
        case ValueType.NUMBER:
            return _is_number(value)
        case ValueType.NUMBER_ARRAY:
            return isinstance(value, list) and all(_is_number(v) for v in value)
        case ValueType.NUMBER_MATRIX:
            return isinstance(value, list) and all(
                isinstance(row, list) and all(_is_number(v) for v in row) for row in value
            )
        case ValueType.STRING_ARRAY:
            return isinstance(value, list) and all(isinstance(v, str) for v in value)
        case _:
            assert_never(value_type)


class PropertyStore:
    """Typed key/value mirror of one entity on the controller.

    The store only holds keys declared for its owner kind. Values coming from
    the controller are type checked; values outside a declared set of valid
    values are dropped.
    """

    def __init__(
        self,
        kind: OwnerKind,
        device: DeviceApi,
        hooks: PropertyHooks | None = None,
        *,
        unlock_timeout: float = DEFAULT_UNLOCK_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            kind: Owner kind selecting the metadata table
            device: Device used for requests and firmware gating
            hooks: Optional per-kind derivation hooks
            unlock_timeout: Seconds a write waits for the lock before forcing it open
            logger: Optional logger, defaults to the module logger
        """
        self._kind = kind
        self._device = device
        self._hooks = hooks
        self._unlock_timeout = unlock_timeout
        self._log = logger or _LOGGER
        self._properties: dict[PropertyKey, Any] = {}

        # Set while writes may proceed
        self._unlocked = asyncio.Event()
        self._unlocked.set()

    def __repr__(self) -> str:
        return f"PropertyStore(kind={self._kind.value!r}, keys={sorted(self._properties)})"

    @property
    def kind(self) -> OwnerKind:
        """Return the owner kind."""
        return self._kind

    @property
    def device(self) -> DeviceApi:
        """Return the device this store mirrors."""
        return self._device

    @property
    def properties(self) -> dict[PropertyKey, Any]:
        """Return the stored values."""
        return self._properties

    @property
    def is_locked(self) -> bool:
        """Return True while writes are deferred."""
        return not self._unlocked.is_set()

    def get_value(self, key: str) -> Any | None:
        """Return the value for ``key``, or None if it was never populated."""
        return self._properties.get(key)  # type: ignore[call-overload]

    def set_value_from_source(self, key: str, value: Any) -> None:
        """Store a value received from the controller.

        Keys not declared for this owner kind are ignored.

        Raises:
            OSPInvalidConversionError: If the value does not match the declared type.
        """
        metadata = metadata_for(self._kind, key)
        if metadata is None:
            return

        if not matches_value_type(metadata.value_type, value):
            raise OSPInvalidConversionError(
                f"Value {value!r} with type {type(value).__name__} could not be assigned "
                f"to property {metadata.key} ({metadata.value_type})"
            )

        if self._hooks is not None:
            value = self._hooks.prepare_value(metadata.key, value)

        if metadata.valid_values is not None and value not in metadata.valid_values:
            self._log.warning(
                "Ignoring value %r for %s: not one of %s",
                value,
                metadata.key,
                sorted(metadata.valid_values),
            )
            return

        old_value = self._properties.get(metadata.key)
        self._properties[metadata.key] = value

        if self._hooks is not None:
            self._hooks.on_value_assigned(metadata.key, old_value, value)

    def apply_batch(self, source: Mapping[str, Any]) -> None:
        """Store every key/value pair of a response.

        Stops at the first value failing its type check; pairs applied before
        it are kept.
        """
        for key, value in source.items():
            self.set_value_from_source(key, value)

    async def refresh_all(self, responses: EndpointResponses | None = None) -> EndpointResponses:
        """Refresh every property from the controller.

        Each endpoint already present in ``responses`` is reused instead of
        fetched again; fetched endpoints are added to it.

        Args:
            responses: Responses already fetched during this pass

        Returns:
            The response cache, extended with the endpoints fetched here
        """
        if responses is None:
            responses = {}

        for endpoint in read_endpoints_needed_for(self._kind):
            response = responses.get(endpoint)
            if response is None:
                response = await self._device.get_endpoint_response(endpoint)
                responses[endpoint] = response
            self.apply_batch(response)
            if self._hooks is not None:
                await self._hooks.after_batch(responses)

        return responses

    async def refresh_one(self, key: str) -> Any:
        """Fetch the endpoint carrying ``key`` and return its fresh value.

        Raises:
            OSPInvalidEndpointError: If ``key`` has no read endpoint.
            OSPMissingValueError: If the response did not carry ``key``.
        """
        endpoint = self.read_endpoint_for(key)
        response = await self._device.get_endpoint_response(endpoint)
        self.apply_batch(response)
        if self._hooks is not None:
            await self._hooks.after_batch({endpoint: response})

        value = self.get_value(key)
        if value is None:
            raise OSPMissingValueError(f"Property {key} missing from {endpoint} response")
        return value

    async def write_value(
        self,
        key: str,
        value: Any,
        params: Mapping[str, Any] | None = None,
    ) -> None:
        """Write a property to the controller and mirror it locally.

        The value is validated before any request is sent.

        Args:
            key: Property to write
            value: New value of the property
            params: Query parameters to send instead of ``{key: value}``

        Raises:
            OSPNotConnectedError: If the firmware version is not known yet.
            OSPNotSupportedByFirmwareError: If the firmware does not support ``key``.
            OSPInvalidEndpointError: If ``key`` has no write endpoint.
            OSPInvalidConversionError: If the value does not match the declared type,
                or is a list and no ``params`` were given.
            ValueError: If the value is not one of the declared valid values.
        """
        self._check_firmware(key)
        endpoint = self.write_endpoint_for(key)
        self._check_value_for_write(key, value, params)
        await self._wait_for_unlock()

        await self.send_command(endpoint, params if params is not None else {key: value})
        self.set_value_from_source(key, value)

    async def send_command(self, endpoint: WriteEndpoint, params: Mapping[str, Any]) -> None:
        """Send a write request once no refresh holds the write lock."""
        await self._wait_for_unlock()

        firmware = self._device.firmware_version
        if (
            endpoint == WriteEndpoint.OPTIONS
            and firmware is not None
            and firmware < FirmwareVersion.FIRMWARE_2_1_9
        ):
            raise OSPNotSupportedByFirmwareError(
                f"Setting options is not supported on firmware {firmware_name(firmware)}"
            )

        await self._device.write_values(endpoint, params)

    def lock(self, value: bool = True) -> None:
        """Set or clear the write lock; clearing it wakes waiting writers."""
        if value:
            self._unlocked.clear()
        else:
            self._unlocked.set()
        self._log.debug("%s write lock %s", self._kind.value, "set" if value else "released")

    def read_endpoint_for(self, key: str) -> ReadEndpoint:
        """Return the read endpoint of ``key`` for this owner kind."""
        metadata = metadata_for(self._kind, key)
        if metadata is None or metadata.read_endpoint is None:
            raise OSPInvalidEndpointError(f"Could not resolve read endpoint for key {key}")
        return metadata.read_endpoint

    def write_endpoint_for(self, key: str) -> WriteEndpoint:
        """Return the write endpoint of ``key`` for this owner kind."""
        metadata = metadata_for(self._kind, key)
        if metadata is None or metadata.write_endpoint is None:
            raise OSPInvalidEndpointError(f"Could not resolve write endpoint for key {key}")
        return metadata.write_endpoint

    def _metadata_for_gating(self, key: str) -> PropertyMetadata | None:
        return metadata_for(self._kind, key) or metadata_for_key_across_all_owners(key)

    def _check_firmware(self, key: str) -> None:
        firmware = self._device.firmware_version
        if firmware is None:
            raise OSPNotConnectedError()

        metadata = self._metadata_for_gating(key)
        if metadata is None:
            raise OSPInvalidEndpointError(f"Unknown property {key}")
        if not metadata.supports_firmware(firmware):
            raise OSPNotSupportedByFirmwareError(
                f"Property {key} is not supported by firmware {firmware_name(firmware)}"
            )

    def _check_value_for_write(
        self, key: str, value: Any, params: Mapping[str, Any] | None
    ) -> None:
        metadata = metadata_for(self._kind, key)
        if metadata is None:
            raise OSPInvalidEndpointError(f"Unknown property {key}")

        if not matches_value_type(metadata.value_type, value):
            raise OSPInvalidConversionError(
                f"Value {value!r} with type {type(value).__name__} cannot be written "
                f"to property {metadata.key} ({metadata.value_type})"
            )
        if metadata.valid_values is not None and value not in metadata.valid_values:
            raise ValueError(
                f"Value {value!r} for {metadata.key} is not one of "
                f"{sorted(metadata.valid_values)}"
            )
        # Query parameters are flat; array properties need explicit wire params
        if params is None and isinstance(value, list):
            raise OSPInvalidConversionError(
                f"Property {metadata.key} holds a list and needs explicit request parameters"
            )

    async def _wait_for_unlock(self) -> None:
        if self._unlocked.is_set():
            return

        try:
            async with asyncio.timeout(self._unlock_timeout):
                await self._unlocked.wait()
        except TimeoutError:
            self._log.warning(
                "%s write lock not released after %ss, forcing release",
                self._kind.value,
                self._unlock_timeout,
            )
            self.lock(False)
