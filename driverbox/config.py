"""Core configuration: data model, JSON parsing, conversion and validation."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

CORE_CONFIG_PATH = "./driver-config"
CORE_CONFIG_NAME = "config.json"
LUA_SCRIPT_NAME = "converter.lua"

PROTOCOL_NAMES = ("http_server", "tcp_server", "modbus", "mqtt", "bacnet", "http_client")

# Keys whose presence in a point map keeps them out of the point's extends.
_POINT_BASE_KEYS = "name,description,valueType,readWrite,defaultValue"

_EDGEX_VALUE_TYPES = {"int": "Int64", "float": "Float64", "string": "String"}


class ConfigError(ValueError):
    """Raised when a core configuration cannot be parsed or is invalid."""


@dataclass
class ModelBase:
    name: str = ""
    model_id: str = ""
    description: str = ""


@dataclass
class PointBase:
    name: str = ""
    description: str = ""
    value_type: str = ""
    read_write: str = ""
    real_report: bool = False
    timer_report: str = ""
    units: str = ""
    report_mode: str = ""


@dataclass
class Point(PointBase):
    extends: dict[str, Any] = field(default_factory=dict)


@dataclass
class DeviceBase:
    name: str = ""
    model_name: str = ""
    description: str = ""


@dataclass
class Device(DeviceBase):
    connection_key: str = ""
    protocol: dict[str, str] = field(default_factory=dict)

    def protocols(self) -> dict[str, dict[str, str]]:
        """Protocol properties keyed the way the device service expects them."""
        return {"other": self.protocol}


@dataclass
class ResourceOperation:
    device_resource: str = ""
    default_value: str = ""
    mappings: dict[str, str] = field(default_factory=dict)


@dataclass
class DeviceAction:
    name: str = ""
    read_write: str = ""
    resource_operations: list[ResourceOperation] = field(default_factory=list)


@dataclass
class DeviceModel(ModelBase):
    device_points: list[dict[str, Any]] = field(default_factory=list)
    device_actions: list[DeviceAction] = field(default_factory=list)
    devices: list[Device] = field(default_factory=list)

    def actions_to_commands(self) -> list[dict[str, Any]]:
        """Convert the model's actions into device command descriptions."""
        return [
            {
                "name": action.name,
                "isHidden": False,
                "readWrite": action.read_write,
                "resourceOperations": [
                    {
                        "deviceResource": op.device_resource,
                        "defaultValue": op.default_value,
                        "mappings": op.mappings,
                    }
                    for op in action.resource_operations
                ],
            }
            for action in self.device_actions
        ]


@dataclass
class TimerTask:
    interval: str = ""
    type: str = ""
    action: Any = None


@dataclass
class ReadPointsAction:
    device_names: list[str] = field(default_factory=list)
    points: list[str] = field(default_factory=list)


@dataclass
class Model(ModelBase):
    points: dict[str, PointBase] = field(default_factory=dict)
    devices: dict[str, DeviceBase] = field(default_factory=dict)

    def points_to_resources(self) -> list[dict[str, Any]]:
        """Convert the model's points into device resource descriptions."""
        resources = []
        for point in self.points.values():
            attributes: dict[str, Any] = {
                "realReport": point.real_report,
                "reportMode": point.report_mode,
                "timerReport": point.timer_report,
            }
            if point.units:
                attributes["units"] = point.units
            resources.append(
                {
                    "description": point.description,
                    "name": point.name,
                    "isHidden": False,
                    "tag": "",
                    "properties": {
                        "valueType": _EDGEX_VALUE_TYPES.get(point.value_type, point.value_type),
                        "readWrite": point.read_write,
                    },
                    "attributes": attributes,
                }
            )
        return resources


def _field(data: dict, key: str, kind: type, where: str) -> Any:
    value = data.get(key)
    if value is None:
        return None
    if kind is bool:
        ok = isinstance(value, bool)
    elif kind in (int, float):
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    else:
        ok = isinstance(value, kind)
    if not ok:
        raise ConfigError(f"{where}.{key}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _text(data: dict, key: str, where: str) -> str:
    value = _field(data, key, str, where)
    return "" if value is None else value


def _objects(data: dict, key: str, where: str) -> list[dict] | None:
    items = _field(data, key, list, where)
    if items is None:
        return None
    for item in items:
        if item is not None and not isinstance(item, dict):
            raise ConfigError(f"{where}.{key}: expected objects")
    return [item or {} for item in items]


def _string_map(data: dict, key: str, where: str) -> dict[str, str]:
    mapping = _field(data, key, dict, where) or {}
    for name, value in mapping.items():
        if not isinstance(value, str):
            raise ConfigError(f"{where}.{key}.{name}: expected str")
    return dict(mapping)


def _device(data: dict) -> Device:
    return Device(
        name=_text(data, "name", "device"),
        description=_text(data, "description", "device"),
        connection_key=_text(data, "connectionKey", "device"),
        protocol=_string_map(data, "protocol", "device"),
    )


def _action(data: dict) -> DeviceAction:
    operations = [
        ResourceOperation(
            device_resource=_text(op, "deviceResource", "resourceOperation"),
            default_value=_text(op, "defaultValue", "resourceOperation"),
            mappings=_string_map(op, "mappings", "resourceOperation"),
        )
        for op in _objects(data, "resourceOperations", "deviceAction") or []
    ]
    return DeviceAction(
        name=_text(data, "name", "deviceAction"),
        read_write=_text(data, "readWrite", "deviceAction"),
        resource_operations=operations,
    )


def _device_model(data: dict) -> DeviceModel:
    return DeviceModel(
        name=_text(data, "name", "deviceModel"),
        model_id=_text(data, "modelId", "deviceModel"),
        description=_text(data, "description", "deviceModel"),
        device_points=_objects(data, "devicePoints", "deviceModel") or [],
        device_actions=[_action(a) for a in _objects(data, "deviceActions", "deviceModel") or []],
        devices=[_device(d) for d in _objects(data, "devices", "deviceModel") or []],
    )


def _timer_task(data: dict) -> TimerTask:
    return TimerTask(
        interval=_text(data, "interval", "timerTask"),
        type=_text(data, "type", "timerTask"),
        action=data.get("action"),
    )


def _tag_error(name: str, tag: str) -> str:
    return f"Key: 'Config.{name}' Error:Field validation for '{name}' failed on the '{tag}' tag"


@dataclass
class Config:
    device_models: list[DeviceModel] | None = None
    connections: dict[str, Any] | None = None
    protocol_name: str = ""
    key: str = ""
    tasks: list[TimerTask] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        """Build a configuration from decoded JSON."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")
        models = _objects(data, "deviceModels", "config")
        return cls(
            device_models=None if models is None else [_device_model(m) for m in models],
            connections=_field(data, "connections", dict, "config"),
            protocol_name=_text(data, "protocolName", "config"),
            tasks=[_timer_task(t) for t in _objects(data, "timerTasks", "config") or []],
        )

    def validate(self) -> None:
        """Raise ConfigError if required fields are missing or invalid."""
        problems = []
        if self.device_models is None:
            problems.append(_tag_error("DeviceModels", "required"))
        if self.connections is None:
            problems.append(_tag_error("Connections", "required"))
        if not self.protocol_name:
            problems.append(_tag_error("ProtocolName", "required"))
        elif self.protocol_name not in PROTOCOL_NAMES:
            problems.append(_tag_error("ProtocolName", "oneof"))
        if problems:
            raise ConfigError("\n".join(problems))


def point_from_map(pm: dict[str, Any]) -> Point:
    """Turn a raw point map into a Point; unknown keys go to extends."""

    def text(key: str) -> str:
        value = pm.get(key)
        return value if isinstance(value, str) else ""

    real_report = pm.get("realReport")
    return Point(
        name=text("name"),
        description=text("description"),
        value_type=text("valueType"),
        read_write=text("readWrite"),
        real_report=real_report if isinstance(real_report, bool) else False,
        timer_report=text("timerReport"),
        units=text("units"),
        report_mode=text("reportMode"),
        extends={k: v for k, v in pm.items() if k not in _POINT_BASE_KEYS},
    )


def parse_config(text: str) -> Config:
    """Parse a configuration from a JSON string."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(str(exc)) from exc
    return Config.from_dict(data)


def parse_config_file(path: str | os.PathLike) -> Config:
    """Parse a configuration from a JSON file."""
    with open(path, encoding="utf-8") as f:
        return parse_config(f.read())


def _walk_dirs(path: str) -> Iterator[str]:
    """Yield ``path`` and every directory below it, depth first in lexical order."""
    yield path
    with os.scandir(path) as entries:
        children = sorted(
            (entry for entry in entries if entry.is_dir(follow_symlinks=False)),
            key=lambda entry: entry.name,
        )
    for child in children:
        yield from _walk_dirs(child.path)


def parse_config_dir(path: str | os.PathLike, config_name: str = CORE_CONFIG_NAME) -> dict[str, Config]:
    """Parse every directory's configuration file under ``path``, keyed by directory name."""
    path = os.fspath(path)
    os.stat(path)
    names = []
    if os.path.isdir(path):
        names = [os.path.basename(os.path.normpath(d)) for d in _walk_dirs(path)]
    if not names:
        raise ConfigError(f"not found core config from {path}")

    configs: dict[str, Config] = {}
    for name in names:
        try:
            config = parse_config_file(os.path.join(path, name, config_name))
        except (OSError, ConfigError):
            continue
        config.key = name
        configs[name] = config
    return configs