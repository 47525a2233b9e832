# driverbox

`driverbox` is the core of an edge device driver. It reads device
configurations, indexes them, keeps a shadow of each device's last values and
online state, converts point values, routes read/write requests to protocol
plugins and encodes/decodes typed values to and from Modbus registers. It has
no dependencies outside the standard library.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Modules

- `driverbox.config` – the configuration model (`Config`, `DeviceModel`,
  `Device`, `Point`, `TimerTask`, ...). `parse_config`, `parse_config_file`
  and `parse_config_dir` read JSON; `Config.validate()` raises `ConfigError`
  when `deviceModels` or `connections` is missing or `protocolName` is not one
  of `http_server`, `tcp_server`, `modbus`, `mqtt`, `bacnet`, `http_client`.
  `parse_config_dir(path, config_name)` walks `path` and every directory below
  it, reads `<path>/<dir name>/<config_name>` for each, keys the results by
  directory name and silently skips directories whose file is missing or not
  valid. `point_from_map` turns a raw point object into a `Point`, putting
  unrecognised keys in `Point.extends`.
- `driverbox.contracts` – the `Plugin`, `Connector` and `ProtocolAdapter`
  abstract classes, `EncodeMode` (`read`/`write`), `PointData` and
  `DeviceData`.
- `driverbox.models` – `PointValue`, `SendPointValues`, `ScriptResult` and
  `SendRequest` data shapes.
- `driverbox.cache` – `CoreCache`, built from a mapping of configurations:
  lookups of models, devices, device points, the device configuration serving
  a point, protocol properties and running plugins. A device point defined
  twice raises `DuplicatePointError`.
- `driverbox.shadow` – `DeviceShadow`: last point values and online state per
  device. A device goes offline when nothing is reported within its TTL
  (15 minutes by default, see `set_default_device_ttl`) or after three failed
  exchanges (`may_be_offline`) with no report for over 60 seconds. A point can
  be bound to the online state (`ShadowDevice.online_bind_point`); its value is
  read by `parse_online_bind_value`. `start()`/`stop()` run the expiry check
  in a background thread; the shadow is also a context manager.
- `driverbox.point_cache` – `PointCache`, a thread-safe TTL cache of point
  values.
- `driverbox.conv` – `convert_point_type`, `to_int64`, `to_float64`,
  `to_string`; conversion errors raise `ConversionError`.
- `driverbox.messagebus` – `MessageBus.write(device_data)` converts reported
  points to typed `CommandValue`s, skips unknown points and values equal to the
  shadow's, records the rest in the shadow and passes an `AsyncValues` batch to
  the sink, returning it (or `None` if nothing was sent).
- `driverbox.send` – `Sender.send` encodes a point request with the plugin
  that serves the point and sends it through its connector;
  `Sender.send_multi_read` reads several points of several devices.
- `driverbox.crontab` – `parse_duration` (strings like `300ms` or
  `1h15m30.5s`, returned in seconds) and `Crontab`, whose jobs start ticking
  together on `start()`.
- `driverbox.notice` – `status_change_notice_data` builds the JSON notice for
  a device going online or offline.
- `driverbox.helper` – `point_value_type_to_edgex`, `get_child_dirs`,
  `logger_level` and `init_logger`.
- `driverbox.modbus_encoding` – byte and word ordering of 16/32/64-bit values
  and floats (`Endianness`, `WordOrder`, `uint32_to_bytes`,
  `bytes_to_float32s`, ...), and bit packing (`encode_bools`,
  `decode_bools`).
- `driverbox.modbus_codec` – Modbus addressing and value codecs:
  `cast_starting_address` (`0x` hex, five-digit notation such as `40001` for
  holding register 0, or a plain number), `get_extend_props`,
  `PointTargetValue.encode_raw_value`, `PointRawValue.decode`,
  `slice_to_point_raw_values` and `ModbusAdapter`.

## Usage

Load and validate every configuration below a directory, then index it:

```python
from driverbox.config import parse_config_dir
from driverbox.cache import CoreCache

configs = parse_config_dir("./driver-config", "config.json")
for cfg in configs.values():
    cfg.validate()

cache = CoreCache(configs)
point = cache.get_point_by_device("sensor_1", "onOff")
```

Track device state and forward new readings:

```python
from driverbox.contracts import DeviceData, PointData
from driverbox.messagebus import MessageBus
from driverbox.shadow import DeviceShadow, new_device

shadow = DeviceShadow(1.0)
shadow.set_online_change_callback(lambda name, online: print(name, online))
shadow.add_device(new_device("sensor_1", "sensor_model", None))

bus = MessageBus(cache, shadow, print)
bus.write(DeviceData("sensor_1", [PointData("onOff", value=1)]))

with shadow:  # runs the expiry check in the background
    ...
```

Encode and decode Modbus registers:

```python
from driverbox.modbus_codec import PointRawValue, PointTargetValue

ptv = PointTargetValue(name="temperature", target_value=1.5)
ptv.encode_raw_value("HOLDING_REGISTER", "Float32", False, False)
print([v.value for v in ptv.values])  # [16320, 0]

prv = PointRawValue(name="temperature")
print(prv.decode([16320, 0], "HOLDING_REGISTER", "FLOAT32", False, False))  # 1.5
```

## What the package does not do

`driverbox` is a library, not a running service. It has no command, no
concrete protocol plugins (HTTP, TCP, MQTT or Modbus transports), no
connection to a Modbus device, no script engine for custom converters, no
REST endpoints, and it does not send notifications itself:
`status_change_notice_data` only builds the payload, and `MessageBus` hands
batches to whatever sink it is given. To talk to devices, implement
`driverbox.contracts.Plugin` and register it with
`CoreCache.add_running_plugin`.

## Tests

```
pytest
```