"""Modbus point codec: register addressing, value encoding and decoding."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from .cache import CoreCache
from .contracts import DeviceData, EncodeMode, PointData, ProtocolAdapter
from .conv import ConversionError, to_float64, to_int64, to_string
from .errors import (
    DeviceNotFoundError,
    DriverError,
    PointNotFoundError,
    ProtocolDataFormatError,
)
from .modbus_encoding import (
    Endianness,
    WordOrder,
    bytes_to_float32s,
    bytes_to_float64s,
    bytes_to_uint16,
    bytes_to_uint16s,
    bytes_to_uint32s,
    bytes_to_uint64s,
    float32_to_bytes,
    float64_to_bytes,
    uint16_to_bytes,
    uint16s_to_bytes,
    uint32_to_bytes,
    uint64_to_bytes,
)

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_HEX = re.compile(r"[+-]?[0-9a-fA-F]+")
_TRIM_ZERO = re.compile(r"(.*)\.0+")


class PrimaryTable(str, Enum):
    """The four Modbus data tables."""

    COIL = "COIL"
    DISCRETE_INPUT = "DISCRETE_INPUT"
    INPUT_REGISTER = "INPUT_REGISTER"
    HOLDING_REGISTER = "HOLDING_REGISTER"


# ---------------------------------------------------------------- lenient casts


def _parse_base0(text: str) -> int:
    """Parse an integer the way a base-0 parser does: 0x, 0o, 0b and leading-0 octal."""
    if not text or any(ch.isspace() for ch in text):
        raise ValueError(f"invalid integer {text!r}")
    sign, body = "", text
    if body[0] in "+-":
        sign, body = body[0], body[1:]
    if len(body) > 1 and body[0] == "0" and body[1] not in "xXoObB":
        body = "0o" + body[1:]
    value = int(sign + body, 0)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer {text!r} out of range")
    return value


def _trim_zero_decimal(text: str) -> str:
    match = _TRIM_ZERO.fullmatch(text)
    return match.group(1) if match else text


def _cast_uint_strict(value: Any, bits: int) -> int:
    mask = (1 << bits) - 1
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        if value < 0:
            raise ValueError("unable to cast negative value")
        return value & mask
    if isinstance(value, float):
        if value < 0:
            raise ValueError("unable to cast negative value")
        try:
            return int(value) & mask
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"unable to cast {value!r}") from exc
    if isinstance(value, str):
        parsed = _parse_base0(_trim_zero_decimal(value))
        if parsed < 0:
            raise ValueError("unable to cast negative value")
        return parsed & mask
    raise ValueError(f"unable to cast {type(value).__name__} to uint{bits}")


def _cast_uint(value: Any, bits: int) -> int:
    try:
        return _cast_uint_strict(value, bits)
    except ValueError:
        return 0


def _cast_float(value: Any) -> float:
    try:
        return to_float64(value)
    except ConversionError:
        return 0.0


def _cast_string(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    try:
        return to_string(value)
    except ConversionError:
        return ""


def _conv_int64(value: Any) -> int:
    try:
        return to_int64(value)
    except ConversionError:
        return 0


def _signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _atoi(text: Any) -> int:
    if isinstance(text, str) and _DECIMAL.fullmatch(text):
        return int(text)
    return 0


# ---------------------------------------------------------------- data shapes


@dataclass
class RegisterValue:
    """A register value to write and its mask; a mask of 0 means none."""

    value: int = 0
    mask: int = 0


@dataclass
class ExtendProps:
    """Modbus-specific properties of a point."""

    register_type: str = ""
    start_address: int = 0
    quantity: int = 0
    raw_type: str = ""
    virtual: bool = False
    points: list[str] = field(default_factory=list)
    byte_swap: bool = False
    word_swap: bool = False


@dataclass
class TransportationData:
    """An encoded request for the Modbus connector."""

    device_name: str = ""
    mode: EncodeMode = EncodeMode.READ
    slave_id: int = 0
    max_quantity: int = 0
    point_name: str = ""
    values: list[RegisterValue] = field(default_factory=list)


@dataclass
class PointRawValue:
    """Registers read for a point and the value decoded from them."""

    name: str = ""
    raw_values: list[int] = field(default_factory=list)
    value: Any = None

    def decode(
        self,
        original_data: list[int],
        register_type: str,
        raw_type: str,
        byte_swap: bool,
        word_swap: bool,
    ) -> Any:
        """Decode registers into ``value`` according to the register and raw type."""
        data = list(original_data)
        e = Endianness(bool(byte_swap))
        w = WordOrder(bool(word_swap))
        raw = uint16s_to_bytes(e, data)
        table = (register_type or "").upper()
        if table in (PrimaryTable.COIL.value, PrimaryTable.DISCRETE_INPUT.value):
            self._expect_length(data, 1)
            self.value = data[0] == 1
            return self.value
        if table not in (PrimaryTable.HOLDING_REGISTER.value, PrimaryTable.INPUT_REGISTER.value):
            raise DriverError(f"unknown register type: {raw_type}")
        kind = (raw_type or "").upper()
        if kind == "STRING":
            self.value = raw.decode("utf-8", errors="replace")
            return self.value
        decoder = _DECODERS.get(kind)
        if decoder is None:
            return self.value
        length, decode = decoder
        self._expect_length(data, length)
        self.value = decode(e, w, raw)
        return self.value

    def _expect_length(self, data: list[int], length: int) -> None:
        if len(data) != length:
            raise DriverError(f"illegal length {self.name}")


_Decoder = Callable[[Endianness, WordOrder, bytes], Any]

_DECODERS: dict[str, tuple[int, _Decoder]] = {
    "UINT16": (1, lambda e, w, b: bytes_to_uint16(e, b)),
    "INT16": (1, lambda e, w, b: _signed(bytes_to_uint16(e, b), 16)),
    "UINT32": (2, lambda e, w, b: bytes_to_uint32s(e, w, b)[0]),
    "INT32": (2, lambda e, w, b: _signed(bytes_to_uint32s(e, w, b)[0], 32)),
    "FLOAT32": (2, lambda e, w, b: bytes_to_float32s(e, w, b)[0]),
    "UINT64": (4, lambda e, w, b: bytes_to_uint64s(e, w, b)[0]),
    "INT64": (4, lambda e, w, b: _signed(bytes_to_uint64s(e, w, b)[0], 64)),
    "FLOAT64": (4, lambda e, w, b: bytes_to_float64s(e, w, b)[0]),
}


@dataclass
class PointTargetValue:
    """A value to write to a point and the registers encoding it."""

    name: str = ""
    target_value: Any = None
    values: list[RegisterValue] = field(default_factory=list)

    def encode_raw_value(
        self, register_type: str, raw_type: str, byte_swap: bool, word_swap: bool
    ) -> list[RegisterValue]:
        """Encode ``target_value`` into registers, in register order."""
        target = self.target_value
        if (register_type or "").upper() == PrimaryTable.COIL.value:
            self.values = [RegisterValue(_cast_uint(target, 16))]
            return self.values
        e = Endianness(bool(byte_swap))
        w = WordOrder(bool(word_swap))
        big = Endianness.BIG_ENDIAN
        kind = (raw_type or "").upper()
        if kind == "UINT16":
            words = [bytes_to_uint16(big, uint16_to_bytes(e, _cast_uint(target, 16)))]
        elif kind == "INT16":
            words = [bytes_to_uint16(big, uint16_to_bytes(e, _conv_int64(target) & 0xFFFF))]
        elif kind == "UINT32":
            words = bytes_to_uint16s(big, uint32_to_bytes(e, w, _cast_uint(target, 32)))
        elif kind == "INT32":
            words = bytes_to_uint16s(big, uint32_to_bytes(e, w, _conv_int64(target) & 0xFFFFFFFF))
        elif kind == "UINT64":
            words = bytes_to_uint16s(big, uint64_to_bytes(e, w, _cast_uint(target, 64)))
        elif kind == "INT64":
            words = bytes_to_uint16s(
                big, uint64_to_bytes(e, w, _conv_int64(target) & ((1 << 64) - 1))
            )
        elif kind == "FLOAT32":
            words = bytes_to_uint16s(big, float32_to_bytes(e, w, _cast_float(target)))
        elif kind == "FLOAT64":
            words = bytes_to_uint16s(big, float64_to_bytes(e, w, _cast_float(target)))
        elif kind == "STRING":
            try:
                words = bytes_to_uint16s(e, _cast_string(target).encode("utf-8"))
            except ValueError as exc:
                raise DriverError(f"string value of {self.name} cannot fill whole registers") from exc
        else:
            return self.values
        self.values = [RegisterValue(word) for word in words]
        return self.values


@dataclass
class RawData:
    """Decoded registers of one device, as handed to the adapter's decode."""

    device_name: str = ""
    point_raw_values: list[PointRawValue] = field(default_factory=list)


# ---------------------------------------------------------------- addressing


def cast_starting_address(value: Any) -> tuple[int, PrimaryTable | None]:
    """Parse a start address: ``0x`` hex, five-digit Modbus notation, or a plain number.

    Five-digit notation also names the table (``40001`` is holding register 0).
    """
    text = _cast_string(value)
    if text.startswith("0x"):
        body = text[2:]
        if not _HEX.fullmatch(body):
            raise DriverError(f"invalid start address {value!r}")
        address = int(body, 16)
        if not _INT32_MIN <= address <= _INT32_MAX:
            raise DriverError(f"invalid start address {value!r}")
        return _cast_uint(address, 16), None
    if len(text) == 5:
        try:
            number = _cast_uint_strict(text, 16)
        except ValueError as exc:
            raise DriverError(f"invalid start address {value!r}") from exc
        if 0 < number < 10000:
            return number - 1, PrimaryTable.COIL
        if 10000 < number < 20000:
            return number - 10001, PrimaryTable.DISCRETE_INPUT
        if 30000 < number < 40000:
            return number - 30001, PrimaryTable.INPUT_REGISTER
        if 40000 < number < 50000:
            return number - 40001, PrimaryTable.HOLDING_REGISTER
        return 0, None
    try:
        return _cast_uint_strict(value, 16), None
    except ValueError as exc:
        raise DriverError(f"invalid start address {value!r}") from exc


def _uint16_field(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and 0 <= value <= 0xFFFF:
        return value
    return 0


def _extend_props_from(extends: Mapping[str, Any]) -> ExtendProps:
    def text(key: str) -> str:
        item = extends.get(key)
        return item if isinstance(item, str) else ""

    def flag(key: str) -> bool:
        item = extends.get(key)
        return item if isinstance(item, bool) else False

    points = extends.get("points")
    if not (isinstance(points, list) and all(isinstance(p, str) for p in points)):
        points = []
    return ExtendProps(
        register_type=text("primaryTable"),
        start_address=_uint16_field(extends.get("startAddress")),
        quantity=_uint16_field(extends.get("quantity")),
        raw_type=text("rawType"),
        virtual=flag("virtual"),
        points=list(points),
        byte_swap=flag("byteSwap"),
        word_swap=flag("wordSwap"),
    )


def get_extend_props(cache: CoreCache, device_name: str, point_name: str) -> ExtendProps:
    """Return the Modbus properties of a device point."""
    point = cache.get_point_by_device(device_name, point_name)
    if point is None:
        raise PointNotFoundError(f"point {point_name} not found for device {device_name}")
    ext = _extend_props_from(point.extends)
    address, table = cast_starting_address(point.extends.get("startAddress"))
    ext.start_address = address
    if table is not None:
        ext.register_type = table.value
    return ext


def slice_to_point_raw_values(
    cache: CoreCache,
    raw_values: list[int],
    start_address: int,
    device_name: str,
    point_names: list[str],
) -> list[PointRawValue]:
    """Split registers read from ``start_address`` into decoded values of each point."""
    raw_values = list(raw_values)
    result = []
    for point_name in point_names:
        ext = get_extend_props(cache, device_name, point_name)
        low = ext.start_address - start_address
        high = low + ext.quantity
        if low < 0 or high > len(raw_values):
            raise DriverError(
                f"point {point_name} lies outside the registers read from {start_address}"
            )
        values = raw_values[low:high]
        prv = PointRawValue(name=point_name, raw_values=values)
        prv.decode(values, ext.register_type, ext.raw_type, ext.byte_swap, ext.word_swap)
        result.append(prv)
    return result


def bool_list_to_uint16(values: list[bool] | None) -> list[int]:
    """Map booleans to 1 and 0."""
    return [1 if flag else 0 for flag in values or []]


def uint16_list_to_bool(values: list[int] | None) -> list[bool]:
    """Map 1 to True and everything else to False."""
    return [value == 1 for value in values or []]


# ---------------------------------------------------------------- adapter


class ModbusAdapter(ProtocolAdapter):
    """Converts point requests into Modbus requests and read registers into device data."""

    def __init__(self, cache: CoreCache):
        self.cache = cache

    def encode(self, device_name: str, mode: EncodeMode, value: PointData) -> TransportationData:
        """Build the request for a point; write requests carry the encoded registers."""
        device = self.cache.get_device_by_device_and_point(device_name, value.point_name)
        if device is None:
            raise DeviceNotFoundError(f"not found device, deviceName is {device_name}")
        mode = EncodeMode(mode)
        result = TransportationData(
            device_name=device_name,
            mode=mode,
            slave_id=_atoi(device.protocol.get("unitID")) & 0xFF,
            max_quantity=_atoi(device.protocol.get("maxQuantity")) & 0xFFFF,
            point_name=value.point_name,
        )
        point = self.cache.get_point_by_device(device_name, value.point_name)
        if point is None:
            raise PointNotFoundError(
                f"not found point from core config, deviceName is {device_name}, "
                f"point name is {value.point_name}"
            )
        if mode is EncodeMode.WRITE:
            target = PointTargetValue(name=value.point_name, target_value=value.value)
            try:
                ext = get_extend_props(self.cache, device_name, point.name)
            except DriverError as exc:
                raise DriverError(f"extend prop parsed error: {exc}") from exc
            result.values = list(
                target.encode_raw_value(ext.register_type, ext.raw_type, ext.byte_swap, ext.word_swap)
            )
        return result

    def decode(self, raw: Any) -> list[DeviceData]:
        """Turn decoded registers into device data."""
        if not isinstance(raw, RawData):
            raise ProtocolDataFormatError()
        values = [PointData(point_name=p.name, value=p.value) for p in raw.point_raw_values]
        return [DeviceData(device_name=raw.device_name, values=values)]