"""Lookup tables built from the core configurations: models, devices, points and plugins."""

from __future__ import annotations

import dataclasses
import threading
from typing import Any, Mapping

from .config import Config, DeviceBase, Model, ModelBase, Point, PointBase
from .config import Device
from .errors import DriverError


class DuplicatePointError(DriverError, ValueError):
    """Two configurations define the same point for the same device."""

    default_message = "duplicate point found"


def _point_base(point: Point) -> PointBase:
    return PointBase(**{f.name: getattr(point, f.name) for f in dataclasses.fields(PointBase)})


class CoreCache:
    """Indexes a set of configurations, keyed by configuration (directory) name."""

    def __init__(self, configs: Mapping[str, Config]):
        self._models: dict[str, Model] = {}
        self._devices: dict[str, DeviceBase] = {}
        self._device_protocols: dict[str, dict[str, dict[str, str]]] = {}
        self._points: dict[tuple[str, str], Point] = {}
        self._point_plugins: dict[tuple[str, str], str] = {}
        self._point_devices: dict[tuple[str, str], Device] = {}
        self._running_plugins: dict[str, Any] = {}
        self._plugin_lock = threading.Lock()

        for key, config in configs.items():
            for device_model in config.device_models or []:
                model = self._models.get(device_model.name)
                if model is None:
                    model = Model(
                        name=device_model.name,
                        model_id=device_model.model_id,
                        description=device_model.description,
                    )
                points: dict[str, Point] = {}
                for raw_point in device_model.device_points:
                    point = _point_from(raw_point)
                    points[point.name] = point
                    model.points.setdefault(point.name, _point_base(point))
                for device in device_model.devices:
                    base = DeviceBase(
                        name=device.name,
                        model_name=model.name,
                        description=device.description,
                    )
                    model.devices.setdefault(device.name, base)
                    self._devices.setdefault(device.name, base)
                    protocols = self._device_protocols.setdefault(device.name, {})
                    protocols[f"{config.protocol_name}_{device.connection_key}"] = device.protocol
                    for point in points.values():
                        point_key = (device.name, point.name)
                        if point_key in self._points:
                            raise DuplicatePointError(
                                f"device {device.name} duplicate point {point.name} found"
                            )
                        self._points[point_key] = point
                        self._point_plugins[point_key] = key
                        self._point_devices[point_key] = device
                self._models[model.name] = model

    def get_model(self, model_name: str) -> ModelBase | None:
        """Return the model's base information, or None if unknown."""
        model = self._models.get(model_name)
        if model is None:
            return None
        return ModelBase(name=model.name, model_id=model.model_id, description=model.description)

    def get_device(self, device_name: str) -> DeviceBase | None:
        """Return the device's base information, or None if unknown."""
        return self._devices.get(device_name)

    def get_device_by_device_and_point(self, device_name: str, point_name: str) -> Device | None:
        """Return the device configuration (connection settings) serving a point."""
        return self._point_devices.get((device_name, point_name))

    def get_point_by_model(self, model_name: str, point_name: str) -> PointBase | None:
        """Return a point of a model, or None."""
        model = self._models.get(model_name)
        if model is None:
            return None
        return model.points.get(point_name)

    def get_point_by_device(self, device_name: str, point_name: str) -> Point | None:
        """Return a point of a device, including its extended properties, or None."""
        return self._points.get((device_name, point_name))

    def get_running_plugin_by_device_and_point(self, device_name: str, point_name: str) -> Any:
        """Return the running plugin responsible for a device point, or None."""
        key = self._point_plugins.get((device_name, point_name))
        if key is None:
            return None
        return self.get_running_plugin_by_key(key)

    def get_running_plugin_by_key(self, key: str) -> Any:
        """Return the running plugin started for a configuration, or None."""
        with self._plugin_lock:
            return self._running_plugins.get(key)

    def add_running_plugin(self, key: str, plugin: Any) -> None:
        """Record the plugin started for a configuration."""
        with self._plugin_lock:
            self._running_plugins[key] = plugin

    def models(self) -> list[Model]:
        """Return every model."""
        return list(self._models.values())

    def devices(self) -> list[DeviceBase]:
        """Return every device."""
        return list(self._devices.values())

    def get_protocols_by_device(self, device_name: str) -> dict[str, dict[str, str]] | None:
        """Return the device's protocol properties keyed by ``<protocol>_<connection>``."""
        return self._device_protocols.get(device_name)


def _point_from(raw: Mapping[str, Any]) -> Point:
    from .config import point_from_map

    return point_from_map(dict(raw))