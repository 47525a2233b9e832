"""Byte and word order conversions between registers and numeric values."""

from __future__ import annotations

import math
import struct
from enum import Enum


class Endianness(Enum):
    """Byte order inside a 16-bit register."""

    LITTLE_ENDIAN = True
    BIG_ENDIAN = False


class WordOrder(Enum):
    """Order of 16-bit words inside a 32- or 64-bit value."""

    LOW_WORD_FIRST = True
    HIGH_WORD_FIRST = False


_BYTE_ORDERS = {Endianness.LITTLE_ENDIAN: "little", Endianness.BIG_ENDIAN: "big"}


def _needs_swap(endianness, word_order) -> bool:
    return Endianness(endianness).value != WordOrder(word_order).value


def _swap_words(data: bytes) -> bytes:
    return b"".join(reversed([data[i:i + 2] for i in range(0, len(data), 2)]))


def _chunks(data: bytes, size: int) -> list[bytes]:
    data = bytes(data)
    if len(data) % size:
        raise ValueError(f"data length {len(data)} is not a multiple of {size}")
    return [data[i:i + size] for i in range(0, len(data), size)]


def _int_to_bytes(size: int, endianness, word_order, value: int) -> bytes:
    out = value.to_bytes(size, _BYTE_ORDERS[Endianness(endianness)])
    return _swap_words(out) if _needs_swap(endianness, word_order) else out


def _bytes_to_ints(size: int, endianness, word_order, data: bytes) -> list[int]:
    order = _BYTE_ORDERS[Endianness(endianness)]
    swap = _needs_swap(endianness, word_order)
    return [
        int.from_bytes(_swap_words(chunk) if swap else chunk, order)
        for chunk in _chunks(data, size)
    ]


def uint16_to_bytes(endianness, value: int) -> bytes:
    """Encode a 16-bit unsigned value."""
    return value.to_bytes(2, _BYTE_ORDERS[Endianness(endianness)])


def uint16s_to_bytes(endianness, values) -> bytes:
    """Encode 16-bit unsigned values one after another."""
    return b"".join(uint16_to_bytes(endianness, v) for v in values)


def bytes_to_uint16(endianness, data: bytes) -> int:
    """Decode the first two bytes as a 16-bit unsigned value."""
    if len(data) < 2:
        raise ValueError("need at least 2 bytes")
    return int.from_bytes(bytes(data[:2]), _BYTE_ORDERS[Endianness(endianness)])


def bytes_to_uint16s(endianness, data: bytes) -> list[int]:
    """Decode every pair of bytes as a 16-bit unsigned value."""
    return [bytes_to_uint16(endianness, chunk) for chunk in _chunks(data, 2)]


def bytes_to_uint32s(endianness, word_order, data: bytes) -> list[int]:
    """Decode every four bytes as a 32-bit unsigned value."""
    return _bytes_to_ints(4, endianness, word_order, data)


def uint32_to_bytes(endianness, word_order, value: int) -> bytes:
    """Encode a 32-bit unsigned value."""
    return _int_to_bytes(4, endianness, word_order, value)


def _float32_bits(value: float) -> int:
    try:
        packed = struct.pack(">f", value)
    except OverflowError:
        packed = struct.pack(">f", math.copysign(math.inf, value))
    return int.from_bytes(packed, "big")


def bytes_to_float32s(endianness, word_order, data: bytes) -> list[float]:
    """Decode every four bytes as a 32-bit float."""
    return [
        struct.unpack(">f", bits.to_bytes(4, "big"))[0]
        for bits in bytes_to_uint32s(endianness, word_order, data)
    ]


def float32_to_bytes(endianness, word_order, value: float) -> bytes:
    """Encode a value as a 32-bit float."""
    return uint32_to_bytes(endianness, word_order, _float32_bits(value))


def bytes_to_uint64s(endianness, word_order, data: bytes) -> list[int]:
    """Decode every eight bytes as a 64-bit unsigned value."""
    return _bytes_to_ints(8, endianness, word_order, data)


def uint64_to_bytes(endianness, word_order, value: int) -> bytes:
    """Encode a 64-bit unsigned value."""
    return _int_to_bytes(8, endianness, word_order, value)


def bytes_to_float64s(endianness, word_order, data: bytes) -> list[float]:
    """Decode every eight bytes as a 64-bit float."""
    return [
        struct.unpack(">d", bits.to_bytes(8, "big"))[0]
        for bits in bytes_to_uint64s(endianness, word_order, data)
    ]


def float64_to_bytes(endianness, word_order, value: float) -> bytes:
    """Encode a value as a 64-bit float."""
    bits = int.from_bytes(struct.pack(">d", value), "big")
    return uint64_to_bytes(endianness, word_order, bits)


def encode_bools(values) -> bytes:
    """Pack booleans into bytes, least significant bit first."""
    values = list(values)
    out = bytearray((len(values) + 7) // 8)
    for i, flag in enumerate(values):
        if flag:
            out[i // 8] |= 1 << (i % 8)
    return bytes(out)


def decode_bools(quantity: int, data: bytes) -> list[bool]:
    """Unpack ``quantity`` booleans, least significant bit first."""
    if len(data) < (quantity + 7) // 8:
        raise ValueError(f"not enough data for {quantity} booleans")
    return [bool((data[i // 8] >> (i % 8)) & 1) for i in range(quantity)]