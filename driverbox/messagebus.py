"""Forwarding of decoded device data to the device service's message bus."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .cache import CoreCache
from .contracts import DeviceData
from .conv import ConversionError, convert_point_type
from .errors import DriverError
from .helper import point_value_type_to_edgex
from .shadow import DeviceShadow

_log = logging.getLogger(__name__)

_VALUE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "Bool": lambda v: isinstance(v, bool),
    "Int64": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "Float64": lambda v: isinstance(v, float),
    "String": lambda v: isinstance(v, str),
}


@dataclass
class CommandValue:
    """A typed reading of one device resource."""

    device_resource_name: str
    value_type: str
    value: Any
    origin: int = field(default_factory=time.time_ns)

    def __post_init__(self) -> None:
        check = _VALUE_CHECKS.get(self.value_type)
        if check is None:
            raise ValueError(f"unsupported value type {self.value_type!r}")
        if not check(self.value):
            raise ValueError(
                f"value {self.value!r} does not match value type {self.value_type}"
            )


@dataclass
class AsyncValues:
    """A batch of readings from one device, pushed without a request."""

    device_name: str
    source_name: str
    command_values: list[CommandValue]


def _same(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


class MessageBus:
    """Converts device data into typed readings and hands new ones to ``sink``."""

    def __init__(
        self,
        cache: CoreCache,
        shadow: DeviceShadow,
        sink: Callable[[AsyncValues], Any],
    ):
        self.cache = cache
        self.shadow = shadow
        self.sink = sink

    def _shadow_value(self, device_name: str, point_name: str) -> Any:
        try:
            return self.shadow.get_device_point(device_name, point_name)
        except DriverError:
            return None

    def write(self, device_data: DeviceData) -> AsyncValues | None:
        """Send the points whose values changed; return what was sent, if anything."""
        device_name = device_data.device_name
        values: list[CommandValue] = []
        for point in device_data.values:
            cached = self.cache.get_point_by_device(device_name, point.point_name)
            if cached is None:
                _log.warning("unknown point: device=%s point=%s", device_name, point.point_name)
                continue
            if _same(self._shadow_value(device_name, point.point_name), point.value):
                _log.debug("point value = cache, stop sending to messageBus")
                continue
            try:
                self.shadow.set_device_point(device_name, point.point_name, point.value)
            except DriverError as exc:
                _log.error("shadow store point value error: %s device=%s", exc, device_name)
            try:
                point_value = convert_point_type(point.value, cached.value_type)
            except ConversionError as exc:
                _log.warning("point value type convert error: %s", exc)
                continue
            point_type = point_value_type_to_edgex(cached.value_type)
            try:
                values.append(CommandValue(point.point_name, point_type, point_value))
            except ValueError as exc:
                _log.warning(
                    "new command value error: %s point=%s type=%s value=%r",
                    exc, point.point_name, point_type, point_value,
                )
        if not values:
            return None
        batch = AsyncValues(device_name=device_name, source_name="default", command_values=values)
        _log.info("send to message bus: device=%s values=%s", device_name, values)
        self.sink(batch)
        return batch