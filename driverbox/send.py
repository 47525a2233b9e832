"""Sending read and write requests to devices through their plugins."""

from __future__ import annotations

import logging

from .cache import CoreCache
from .contracts import EncodeMode, PointData
from .errors import DriverError
from .shadow import DeviceShadow

_log = logging.getLogger(__name__)


class Sender:
    """Routes point requests to the running plugin that serves each device point."""

    def __init__(self, cache: CoreCache, shadow: DeviceShadow):
        self.cache = cache
        self.shadow = shadow

    def _may_be_offline(self, device_name: str) -> None:
        try:
            self.shadow.may_be_offline(device_name)
        except DriverError:
            pass

    def send(self, device_name: str, mode: EncodeMode, value: PointData) -> None:
        """Encode ``value`` for the device and send it; errors are raised."""
        plugin = self.cache.get_running_plugin_by_device_and_point(device_name, value.point_name)
        if plugin is None:
            raise DriverError(f"not found running plugin, device name is {device_name}")
        try:
            conn = plugin.connector(device_name, value.point_name)
        except Exception:
            self._may_be_offline(device_name)
            raise
        try:
            encoded = plugin.protocol_adapter().encode(device_name, mode, value)
            try:
                conn.send(encoded)
            except Exception:
                self._may_be_offline(device_name)
                raise
        finally:
            try:
                conn.release()
            except Exception as exc:
                _log.debug("connector release error: %s", exc)

    def send_multi_read(self, device_names: list[str], point_names: list[str]) -> None:
        """Read every point of every device; stop at the first unknown point."""
        for device_name in device_names:
            for point_name in point_names:
                point = self.cache.get_point_by_device(device_name, point_name)
                if point is None:
                    _log.error("not found point, point name is %s", point_name)
                    return
                try:
                    self.send(
                        device_name,
                        EncodeMode.READ,
                        PointData(point_name=point_name, type=point.value_type),
                    )
                except Exception as exc:
                    _log.error("send error: %s", exc)