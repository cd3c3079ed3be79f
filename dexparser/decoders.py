"""
Primitive value decoders.

Every decoder is a plain callable with the signature

    decoder(data: bytes, offset: int) -> (value, size)

where ``offset`` is absolute within ``data`` and ``size`` is the number of
bytes consumed. Decoders hold no state; the factories below (``fixed_bytes``,
``make_enum``) return new decoders bound to their parameters.
"""

import struct
from collections.abc import Mapping
from typing import Any, Callable, Tuple

from .errors import BufferOverrun, MalformedVarint

Decoder = Callable[[bytes, int], Tuple[Any, int]]


def _require(data: bytes, offset: int, size: int):
    if offset < 0 or offset + size > len(data):
        raise BufferOverrun(
            f"Cannot read {size} bytes; buffer holds {len(data)} bytes", offset)


def fixed_bytes(length: int) -> Decoder:
    """Returns a decoder consuming exactly ``length`` uninterpreted bytes."""
    if length < 0:
        raise ValueError(f"Invalid fixed byte length: {length}")

    def decode(data: bytes, offset: int) -> Tuple[bytes, int]:
        _require(data, offset, length)
        return bytes(data[offset:offset + length]), length

    decode.__name__ = f"bytes{length}"
    return decode


def ushort(data: bytes, offset: int) -> Tuple[int, int]:
    _require(data, offset, 2)
    return struct.unpack_from('<H', data, offset)[0], 2


def uint(data: bytes, offset: int) -> Tuple[int, int]:
    _require(data, offset, 4)
    return struct.unpack_from('<I', data, offset)[0], 4


def uleb128(data: bytes, offset: int) -> Tuple[int, int]:
    """
    Decodes an unsigned LEB128 value.

    Each byte contributes its low 7 bits, least significant chunk first;
    a clear high bit terminates the sequence.
    """
    result = 0
    shift = 0
    pos = offset
    while True:
        if pos < 0 or pos >= len(data):
            raise MalformedVarint("Unterminated ULEB128 sequence", offset)
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7f) << shift
        shift += 7
        if not byte & 0x80:
            return result, pos - offset


def uleb128p1(data: bytes, offset: int) -> Tuple[int, int]:
    """ULEB128 minus one; an encoded 0 decodes to -1 (no index)."""
    value, size = uleb128(data, offset)
    return value - 1, size


def _find_terminator(data: bytes, start: int, origin: int) -> int:
    end = data.find(b'\0', start) if 0 <= start <= len(data) else -1
    if end == -1:
        raise BufferOverrun("Missing zero terminator", origin)
    return end


def utf8(data: bytes, offset: int) -> Tuple[str, int]:
    """
    Decodes a string data item: a ULEB128 length prefix (UTF-16 code units,
    not used for decoding) followed by zero-terminated UTF-8 text.
    """
    _, prefix_size = uleb128(data, offset)
    start = offset + prefix_size
    end = _find_terminator(data, start, offset)
    text = bytes(data[start:end]).decode('utf-8', errors='replace')
    return text, prefix_size + (end - start) + 1


def zero_terminated_span(data: bytes, offset: int) -> Tuple[bytes, int]:
    """Returns the raw bytes up to and including the next zero byte."""
    end = _find_terminator(data, offset, offset)
    return bytes(data[offset:end + 1]), end + 1 - offset


def format_enum_fallback(value: int) -> str:
    return f"0x{value:x}"


def make_enum(base: Decoder, names: Mapping[int, str]) -> Decoder:
    """
    Wraps ``base`` so its value is mapped through ``names``.

    Values missing from the table are not an error; they decode to their
    lowercase hexadecimal spelling, e.g. ``"0x3"``.
    """
    if not isinstance(names, Mapping):
        raise ValueError("Invalid enum type spec: value table must be a mapping")
    table = dict(names)

    def decode(data: bytes, offset: int) -> Tuple[str, int]:
        value, size = base(data, offset)
        name = table.get(value)
        if name is None:
            name = format_enum_fallback(value)
        return name, size

    decode.__name__ = f"enum_{getattr(base, '__name__', 'value')}"
    return decode
