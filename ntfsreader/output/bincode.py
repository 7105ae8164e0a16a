"""
Encoder for the bincode (v1, default options) binary layout.

Integers are little-endian and fixed width, strings and sequences carry a
u64 length prefix, and an optional value is a one-byte tag followed by the
value when present. Records describe their field layout with a
``BINCODE_LAYOUT`` tuple of (field name, kind) pairs.
"""

import struct
from typing import Any, Iterable, Sequence, Tuple

from ..exceptions import SerializationError


_INT_FORMATS = {
    'u8': '<B',
    'u16': '<H',
    'u32': '<I',
    'u64': '<Q',
    'i32': '<i',
    'i64': '<q',
}

_U128_LIMIT = 1 << 128


def encode_value(kind: str, value: Any) -> bytes:
    """
    Encode a single value of the given kind.

    Kinds: u8, u16, u32, u64, u128, i32, i64, bool, str, and ``option:<kind>``.

    Raises:
        SerializationError: If the value does not fit the kind
    """
    if kind.startswith('option:'):
        if value is None:
            return b'\x00'
        return b'\x01' + encode_value(kind[len('option:'):], value)

    if kind == 'str':
        if not isinstance(value, str):
            raise SerializationError(f"Expected a string, got {type(value).__name__}")
        data = value.encode('utf-8')
        return struct.pack('<Q', len(data)) + data

    if kind == 'bool':
        return b'\x01' if value else b'\x00'

    if kind == 'u128':
        if not 0 <= value < _U128_LIMIT:
            raise SerializationError(f"Value out of range for u128: {value}")
        return value.to_bytes(16, 'little')

    try:
        return struct.pack(_INT_FORMATS[kind], value)
    except KeyError:
        raise SerializationError(f"Unknown bincode kind: {kind}")
    except struct.error as e:
        raise SerializationError(f"Value out of range for {kind}: {value} ({e})")


def encode_record(record: Any, layout: Sequence[Tuple[str, str]]) -> bytes:
    """Encode a record field by field following its layout"""
    return b''.join(encode_value(kind, getattr(record, name)) for name, kind in layout)


def encode_sequence(records: Iterable[Any], layout: Sequence[Tuple[str, str]]) -> bytes:
    """Encode records as a sequence: u64 element count followed by each record"""
    encoded = [encode_record(record, layout) for record in records]
    return struct.pack('<Q', len(encoded)) + b''.join(encoded)
