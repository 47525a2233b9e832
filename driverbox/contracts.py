"""Interfaces between the driver core and its protocol plugins."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class EncodeMode(str, Enum):
    READ = "read"
    WRITE = "write"


@dataclass
class PointData:
    point_name: str = ""
    type: str = ""
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.point_name, "type": self.type, "value": self.value}


@dataclass
class DeviceData:
    device_name: str = ""
    values: list[PointData] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(
            {"device_name": self.device_name, "values": [v.to_dict() for v in self.values]},
            separators=(",", ":"),
            ensure_ascii=False,
        )

    @classmethod
    def from_dict(cls, data: Any) -> DeviceData:
        """Build device data from decoded JSON; raise ValueError on a bad shape."""
        if not isinstance(data, dict):
            raise ValueError("device data must be an object")
        name = data.get("device_name") or ""
        if not isinstance(name, str):
            raise ValueError("device_name must be a string")
        raw_values = data.get("values") or []
        if not isinstance(raw_values, list):
            raise ValueError("values must be a list")
        values = []
        for item in raw_values:
            item = item or {}
            if not isinstance(item, dict):
                raise ValueError("each value must be an object")
            point_name = item.get("name") or ""
            value_type = item.get("type") or ""
            if not isinstance(point_name, str) or not isinstance(value_type, str):
                raise ValueError("point name and type must be strings")
            values.append(PointData(point_name, value_type, item.get("value")))
        return cls(name, values)


OnReceiveHandler = Callable[["Plugin", Any], Any]


class Connector(ABC):
    """A connection to a device."""

    @abstractmethod
    def send(self, data: Any) -> None:
        """Send encoded data."""

    @abstractmethod
    def release(self) -> None:
        """Release the connection."""


class ProtocolAdapter(ABC):
    """Converts between point data and protocol data."""

    @abstractmethod
    def encode(self, device_name: str, mode: EncodeMode, value: PointData) -> Any:
        """Encode point data into protocol data."""

    @abstractmethod
    def decode(self, raw: Any) -> list[DeviceData]:
        """Decode protocol data into device data."""


class Plugin(ABC):
    """A protocol driver plugin."""

    @abstractmethod
    def initialize(self, logger: Any, config: Any, handler: OnReceiveHandler) -> None:
        """Set up the plugin with a logger, its configuration and a receive callback."""

    @abstractmethod
    def protocol_adapter(self) -> ProtocolAdapter:
        """Return the plugin's protocol adapter."""

    @abstractmethod
    def connector(self, device_name: str, point_name: str) -> Connector:
        """Return a connector for the device point."""

    @abstractmethod
    def destroy(self) -> None:
        """Release all plugin resources."""