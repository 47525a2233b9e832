"""Local device shadow: last point values and online state of each device."""

from __future__ import annotations

import dataclasses
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from .errors import DriverError

_default_device_ttl = 15 * 60.0

_ONLINE_WORDS = ("on", "online", "1", "true", "yes")
_OFFLINE_WORDS = ("off", "offline", "0", "false", "no")

OnlineChangeCallback = Callable[[str, bool], Any]


class UnknownDeviceError(DriverError, LookupError):
    default_message = "unknown device"


class DeviceRepeatError(DriverError, ValueError):
    default_message = "device already exists"


class BindPointDataError(DriverError, ValueError):
    default_message = "bind online point data can't be parsed"


def set_default_device_ttl(ttl: float) -> None:
    """Set the lifetime, in seconds, given to devices made by ``new_device``."""
    global _default_device_ttl
    _default_device_ttl = ttl


@dataclass
class DevicePoint:
    name: str
    value: Any


@dataclass
class ShadowDevice:
    """A device's shadow state; ``ttl`` is seconds without reports before it goes offline."""

    name: str
    model_name: str
    points: dict[str, DevicePoint] | None = None
    ttl: float = field(default_factory=lambda: _default_device_ttl)
    online_bind_point: str = ""
    online: bool = True
    disconnect_times: int = 0
    updated_at: float = 0.0


def new_device(device_name: str, model_name: str, points: dict[str, DevicePoint] | None) -> ShadowDevice:
    """Create an online device with the default lifetime."""
    return ShadowDevice(name=device_name, model_name=model_name, points=points, ttl=_default_device_ttl)


def _parse_online_word(text: str) -> bool:
    if text in _ONLINE_WORDS:
        return True
    if text in _OFFLINE_WORDS:
        return False
    raise BindPointDataError()


def parse_online_bind_value(value: Any) -> bool:
    """Interpret a bound point's value (str, int, float or bool) as an online state."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _parse_online_word(value)
    if isinstance(value, int):
        return _parse_online_word(str(value))
    if isinstance(value, float):
        return _parse_online_word("%.0f" % value)
    raise BindPointDataError()


def _copy(device: ShadowDevice) -> ShadowDevice:
    points = None if device.points is None else dict(device.points)
    return dataclasses.replace(device, points=points)


class DeviceShadow:
    """Tracks devices' point values and online state; ``start`` runs the expiry checker."""

    def __init__(self, check_interval: float = 1.0):
        self._check_interval = check_interval
        self._lock = threading.RLock()
        self._devices: dict[str, ShadowDevice] = {}
        self._callback: OnlineChangeCallback | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> DeviceShadow:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _lookup(self, device_name: str) -> ShadowDevice:
        try:
            return self._devices[device_name]
        except KeyError:
            raise UnknownDeviceError() from None

    def _notify(self, device_name: str, online: bool) -> None:
        callback = self._callback
        if callback is not None:
            callback(device_name, online)

    def add_device(self, device: ShadowDevice) -> None:
        """Add a device; raise DeviceRepeatError if its name is taken."""
        with self._lock:
            if device.name in self._devices:
                raise DeviceRepeatError()
            stored = _copy(device)
            stored.updated_at = time.time()
            self._devices[device.name] = stored

    def get_device(self, device_name: str) -> ShadowDevice:
        """Return a copy of the device's state."""
        with self._lock:
            return _copy(self._lookup(device_name))

    def set_device_point(self, device_name: str, point_name: str, value: Any) -> None:
        """Record a reported value; a report also updates the online state."""
        with self._lock:
            device = self._lookup(device_name)
            if device.points is None:
                device.points = {}
            device.updated_at = time.time()
            device.disconnect_times = 0
            device.points[point_name] = DevicePoint(point_name, value)
            if device.online_bind_point == point_name:
                try:
                    online = parse_online_bind_value(value)
                except BindPointDataError:
                    online = device.online
            else:
                online = True
            changed = device.online != online
            device.online = online
        if changed:
            self._notify(device_name, online)

    def get_device_point(self, device_name: str, point_name: str) -> Any:
        """Return a point's value, or None if unset, offline or stale."""
        with self._lock:
            device = self._lookup(device_name)
            if not device.online or time.time() - device.updated_at > device.ttl:
                return None
            point = (device.points or {}).get(point_name)
            return None if point is None else point.value

    def get_device_points(self, device_name: str) -> dict[str, DevicePoint]:
        """Return all recorded points of the device."""
        with self._lock:
            return dict(self._lookup(device_name).points or {})

    def get_device_updated_at(self, device_name: str) -> float:
        """Return the time, in seconds since the epoch, of the device's last update."""
        with self._lock:
            return self._lookup(device_name).updated_at

    def get_device_status(self, device_name: str) -> bool:
        """Return True if the device is online."""
        with self._lock:
            return self._lookup(device_name).online

    def _change_online(self, device_name: str, online: bool) -> None:
        with self._lock:
            device = self._lookup(device_name)
            if device.online == online:
                return
            device.online = online
            device.updated_at = time.time()
            device.disconnect_times = 0
        self._notify(device_name, online)

    def set_online(self, device_name: str) -> None:
        self._change_online(device_name, True)

    def set_offline(self, device_name: str) -> None:
        self._change_online(device_name, False)

    def may_be_offline(self, device_name: str) -> None:
        """Count a failed exchange; three failures with no report for 60 s mark it offline."""
        with self._lock:
            device = self._lookup(device_name)
            if not device.online:
                return
            device.disconnect_times += 1
            if not (time.time() - device.updated_at > 60 and device.disconnect_times >= 3):
                return
        self.set_offline(device_name)

    def set_online_change_callback(self, callback: OnlineChangeCallback | None) -> None:
        """Call ``callback(device_name, online)`` whenever a device's state changes."""
        self._callback = callback

    def check_online(self) -> None:
        """Mark offline every online device whose lifetime has run out."""
        now = time.time()
        with self._lock:
            expired = [
                name
                for name, device in self._devices.items()
                if device.online and now - device.updated_at > device.ttl
            ]
        for name in expired:
            self.set_offline(name)

    def start(self) -> None:
        """Run ``check_online`` periodically in a background thread."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the background checker."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=5)
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self._check_interval):
            self.check_online()