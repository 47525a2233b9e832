import threading
from unittest import mock

import pytest

from driverbox.shadow import (
    BindPointDataError,
    DevicePoint,
    DeviceRepeatError,
    DeviceShadow,
    ShadowDevice,
    UnknownDeviceError,
    new_device,
    parse_online_bind_value,
    set_default_device_ttl,
)


class FakeClock:
    def __init__(self):
        self.now = 1_000_000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    fake = FakeClock()
    with mock.patch("time.time", new=fake):
        yield fake


@pytest.fixture(autouse=True)
def restore_default_ttl():
    yield
    set_default_device_ttl(15 * 60)


@pytest.fixture
def events():
    return []


@pytest.fixture
def shadow(events):
    s = DeviceShadow()
    s.set_online_change_callback(lambda name, online: events.append((name, online)))
    s.add_device(new_device("sensor_1", "model", None))
    return s


def test_new_device_defaults():
    device = new_device("sensor_1", "model", None)
    assert device.ttl == 15 * 60
    assert device.online is True
    assert device.online_bind_point == ""
    assert device.points is None


def test_set_default_device_ttl():
    set_default_device_ttl(30)
    assert new_device("a", "m", None).ttl == 30


def test_add_duplicate_device(shadow):
    with pytest.raises(DeviceRepeatError):
        shadow.add_device(new_device("sensor_1", "model", None))


def test_unknown_device_errors(shadow):
    with pytest.raises(UnknownDeviceError):
        shadow.get_device("missing")
    with pytest.raises(UnknownDeviceError):
        shadow.get_device_point("missing", "p")
    with pytest.raises(UnknownDeviceError):
        shadow.set_device_point("missing", "p", 1)
    with pytest.raises(UnknownDeviceError):
        shadow.get_device_status("missing")
    with pytest.raises(UnknownDeviceError):
        shadow.may_be_offline("missing")
    with pytest.raises(UnknownDeviceError):
        shadow.set_offline("missing")


def test_set_and_get_point(shadow):
    shadow.set_device_point("sensor_1", "onOff", 1)
    assert shadow.get_device_point("sensor_1", "onOff") == 1
    assert shadow.get_device_points("sensor_1") == {"onOff": DevicePoint("onOff", 1)}


def test_unset_point_is_none(shadow):
    assert shadow.get_device_point("sensor_1", "voc") is None


def test_stale_point_is_none():
    s = DeviceShadow()
    s.add_device(ShadowDevice(name="d", model_name="m", ttl=-1))
    s.set_device_point("d", "p", 5)
    assert s.get_device_point("d", "p") is None
    assert s.get_device_points("d")["p"].value == 5


def test_get_device_returns_copy(shadow):
    device = shadow.get_device("sensor_1")
    device.online = False
    assert shadow.get_device_status("sensor_1") is True


def test_updated_at_moves_forward(shadow, clock):
    before = shadow.get_device_updated_at("sensor_1")
    clock.now += 5
    shadow.set_device_point("sensor_1", "p", 1)
    assert shadow.get_device_updated_at("sensor_1") == before + 5 or shadow.get_device_updated_at("sensor_1") == clock.now


def test_set_offline_and_online_callbacks(shadow, events):
    shadow.set_offline("sensor_1")
    shadow.set_offline("sensor_1")
    assert shadow.get_device_status("sensor_1") is False
    shadow.set_online("sensor_1")
    assert events == [("sensor_1", False), ("sensor_1", True)]


def test_offline_device_hides_points(shadow):
    shadow.set_device_point("sensor_1", "p", 3)
    shadow.set_offline("sensor_1")
    assert shadow.get_device_point("sensor_1", "p") is None


def test_report_brings_device_online(shadow, events):
    shadow.set_offline("sensor_1")
    shadow.set_device_point("sensor_1", "p", 3)
    assert shadow.get_device_status("sensor_1") is True
    assert events == [("sensor_1", False), ("sensor_1", True)]


def test_bind_point_controls_online(events):
    s = DeviceShadow()
    s.set_online_change_callback(lambda name, online: events.append((name, online)))
    s.add_device(ShadowDevice(name="d", model_name="m", online_bind_point="status"))
    s.set_device_point("d", "status", "off")
    assert s.get_device_status("d") is False
    s.set_device_point("d", "status", "garbage")
    assert s.get_device_status("d") is False
    s.set_device_point("d", "status", "on")
    assert s.get_device_status("d") is True
    assert events == [("d", False), ("d", True)]


def test_may_be_offline_needs_three_failures_after_a_minute(shadow, events, clock):
    shadow.set_device_point("sensor_1", "p", 1)
    clock.now += 61
    shadow.may_be_offline("sensor_1")
    shadow.may_be_offline("sensor_1")
    assert shadow.get_device_status("sensor_1") is True
    shadow.may_be_offline("sensor_1")
    assert shadow.get_device_status("sensor_1") is False
    assert events == [("sensor_1", False)]


def test_may_be_offline_within_a_minute_stays_online(shadow, clock):
    shadow.set_device_point("sensor_1", "p", 1)
    clock.now += 30
    for _ in range(5):
        shadow.may_be_offline("sensor_1")
    assert shadow.get_device_status("sensor_1") is True
    assert shadow.get_device("sensor_1").disconnect_times == 5


def test_report_resets_disconnect_count(shadow):
    shadow.may_be_offline("sensor_1")
    shadow.set_device_point("sensor_1", "p", 1)
    assert shadow.get_device("sensor_1").disconnect_times == 0


def test_check_online_expires_devices(events, clock):
    s = DeviceShadow()
    s.set_online_change_callback(lambda name, online: events.append((name, online)))
    s.add_device(ShadowDevice(name="d", model_name="m", ttl=10))
    clock.now += 5
    s.check_online()
    assert s.get_device_status("d") is True
    clock.now += 6
    s.check_online()
    assert s.get_device_status("d") is False
    assert events == [("d", False)]


def test_background_checker():
    went_offline = threading.Event()
    s = DeviceShadow(check_interval=0.01)
    s.set_online_change_callback(lambda name, online: None if online else went_offline.set())
    s.add_device(ShadowDevice(name="d", model_name="m", ttl=-1))
    with s:
        assert went_offline.wait(2)
    assert s.get_device_status("d") is False


@pytest.mark.parametrize(
    "value, expected",
    [
        ("on", True),
        ("online", True),
        ("yes", True),
        ("true", True),
        ("1", True),
        ("off", False),
        ("offline", False),
        ("no", False),
        ("false", False),
        ("0", False),
        (1, True),
        (0, False),
        (1.2, True),
        (0.4, False),
        (True, True),
        (False, False),
    ],
)
def test_parse_online_bind_value(value, expected):
    assert parse_online_bind_value(value) is expected


@pytest.mark.parametrize("value", ["maybe", "ON", 2, 1.6, None, [1]])
def test_parse_online_bind_value_errors(value):
    with pytest.raises(BindPointDataError):
        parse_online_bind_value(value)