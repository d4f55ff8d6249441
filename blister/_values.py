"""Blist.v3 value codec — typed scalar values and key/value entries.

Every value on the wire is a 1-byte type tag followed by a payload whose
shape the tag fully determines.  All integers are little-endian:

    U8          (0)  1 byte
    U16         (1)  2 bytes
    U32         (2)  4 bytes
    U64         (3)  8 bytes
    SHORT_STRING(4)  u8 length + UTF-8
    LONG_STRING (5)  u16 length + UTF-8
    BINARY      (6)  u32 length + raw bytes
    BOOL        (7)  1 byte, 0x00 or 0x01
    FLOAT       (8)  IEEE-754 single precision
    FIXED_HASH  (9)  20 raw bytes

An entry is a u32 key followed by one tagged value.  The tag <-> codec
mapping lives in exactly one table (_CODECS) so the encoder and decoder can
not disagree about what a tag means.
"""

from __future__ import annotations

import binascii
import enum
import hmac
import io
import struct
from typing import Any, BinaryIO, Callable, Dict, Tuple, Union

from ._constants import (
    BINARY_MAX,
    FIXED_HASH_LEN,
    LONG_STRING_MAX,
    READ_CHUNK,
    SHORT_STRING_MAX,
    U8_MAX,
    U16_MAX,
    U32_MAX,
    U64_MAX,
)
from ._errors import (
    ERR_INTEGER_OVERFLOW,
    ERR_INVALID_BOOLEAN,
    ERR_INVALID_DATA_TYPE,
    ERR_INVALID_UTF8,
    BlisterError,
)


def read_exact(reader: BinaryIO, n: int) -> bytes:
    """Read exactly n bytes or raise EOFError.

    Loops because raw streams and sockets may legally return short reads.
    Each read asks for at most READ_CHUNK bytes so a forged length can't
    make the reader allocate more than the input actually holds.
    """
    chunks = []
    remaining = n
    while remaining > 0:
        chunk = reader.read(min(remaining, READ_CHUNK))
        if not chunk:
            raise EOFError(
                "unexpected end of stream ({} of {} bytes read)".format(n - remaining, n))
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


# ── FixedHash ────────────────────────────────────────────────

class FixedHash:
    """Opaque 20-byte content identifier.

    The format does not care which algorithm produced it.  Equality is
    checked in constant time so comparisons leak nothing about how many
    leading bytes matched.
    """

    __slots__ = ("_digest",)

    def __init__(self, digest: Union[bytes, bytearray, str]) -> None:
        if isinstance(digest, str):
            try:
                digest = bytes.fromhex(digest)
            except ValueError:
                raise ValueError("FixedHash: invalid hex string")
        if not isinstance(digest, (bytes, bytearray)):
            raise TypeError("FixedHash: expected bytes, got {}".format(type(digest).__name__))
        if len(digest) != FIXED_HASH_LEN:
            raise ValueError("FixedHash: expected {} bytes, got {}".format(
                FIXED_HASH_LEN, len(digest)))
        self._digest = bytes(digest)

    def __bytes__(self) -> bytes:
        return self._digest

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FixedHash):
            return NotImplemented
        return hmac.compare_digest(self._digest, other._digest)

    def __hash__(self) -> int:
        return hash(self._digest)

    def __repr__(self) -> str:
        return "FixedHash('{}')".format(self.hex())

    def hex(self) -> str:
        return binascii.hexlify(self._digest).decode("ascii")


# ── Value kinds ──────────────────────────────────────────────

class ValueType(enum.IntEnum):
    """Value kind.  The integer value is the wire tag."""

    U8 = 0
    U16 = 1
    U32 = 2
    U64 = 3
    SHORT_STRING = 4
    LONG_STRING = 5
    BINARY = 6
    BOOL = 7
    FLOAT = 8
    FIXED_HASH = 9


_INT_MAX = {
    ValueType.U8: U8_MAX,
    ValueType.U16: U16_MAX,
    ValueType.U32: U32_MAX,
    ValueType.U64: U64_MAX,
}

_F32 = struct.Struct("<f")


def _check_data(vt: ValueType, data: Any) -> Any:
    """Validate and normalise a payload for the given kind."""
    if vt in _INT_MAX:
        # bool is an int subclass; True must not silently become U8 1.
        if isinstance(data, bool) or not isinstance(data, int):
            raise TypeError("{} value must be int, got {}".format(vt.name, type(data).__name__))
        if data < 0 or data > _INT_MAX[vt]:
            raise BlisterError(ERR_INTEGER_OVERFLOW,
                               "{} out of {} range".format(data, vt.name), data)
        return data

    if vt in (ValueType.SHORT_STRING, ValueType.LONG_STRING):
        if not isinstance(data, str):
            raise TypeError("{} value must be str, got {}".format(vt.name, type(data).__name__))
        return data

    if vt == ValueType.BINARY:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("BINARY value must be bytes, got {}".format(type(data).__name__))
        return bytes(data)

    if vt == ValueType.BOOL:
        if not isinstance(data, bool):
            raise TypeError("BOOL value must be bool, got {}".format(type(data).__name__))
        return data

    if vt == ValueType.FLOAT:
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            raise TypeError("FLOAT value must be float, got {}".format(type(data).__name__))
        # Round through single precision so a value equals its own decode.
        try:
            return _F32.unpack(_F32.pack(float(data)))[0]
        except OverflowError:
            raise BlisterError(ERR_INTEGER_OVERFLOW,
                               "{} out of single-precision range".format(data), data)

    if vt == ValueType.FIXED_HASH:
        if isinstance(data, FixedHash):
            return data
        return FixedHash(data)

    raise BlisterError(ERR_INVALID_DATA_TYPE, "unknown value type {!r}".format(vt), vt)


class Value:
    """One typed value: a ValueType plus its Python payload.

    Payload types: int for U8..U64, str for both string kinds, bytes for
    BINARY, bool for BOOL, float for FLOAT, FixedHash for FIXED_HASH.
    """

    __slots__ = ("type", "data")

    def __init__(self, type: ValueType, data: Any) -> None:
        vt = ValueType(type)
        self.type = vt
        self.data = _check_data(vt, data)

    # Explicit constructors, one per kind.

    @classmethod
    def u8(cls, n: int) -> "Value":
        return cls(ValueType.U8, n)

    @classmethod
    def u16(cls, n: int) -> "Value":
        return cls(ValueType.U16, n)

    @classmethod
    def u32(cls, n: int) -> "Value":
        return cls(ValueType.U32, n)

    @classmethod
    def u64(cls, n: int) -> "Value":
        return cls(ValueType.U64, n)

    @classmethod
    def short_string(cls, s: str) -> "Value":
        return cls(ValueType.SHORT_STRING, s)

    @classmethod
    def long_string(cls, s: str) -> "Value":
        return cls(ValueType.LONG_STRING, s)

    @classmethod
    def binary(cls, b: bytes) -> "Value":
        return cls(ValueType.BINARY, b)

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        return cls(ValueType.BOOL, flag)

    @classmethod
    def float32(cls, x: float) -> "Value":
        return cls(ValueType.FLOAT, x)

    @classmethod
    def fixed_hash(cls, h: Union[FixedHash, bytes, str]) -> "Value":
        return cls(ValueType.FIXED_HASH, h)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.type == other.type and self.data == other.data

    def __hash__(self) -> int:
        return hash((self.type, self.data))

    def __repr__(self) -> str:
        return "Value.{}({!r})".format(self.type.name, self.data)


def coerce_value(obj: Any) -> Value:
    """Turn an unambiguous Python native into a Value.

    Bare ints are rejected: U8..U64 share one Python type, so the caller
    has to pick the width with Value.u8() and friends.
    """
    if isinstance(obj, Value):
        return obj
    # bool before int, same subclass trap as in _check_data.
    if isinstance(obj, bool):
        return Value(ValueType.BOOL, obj)
    if isinstance(obj, int):
        raise TypeError("ambiguous integer width; wrap it with Value.u8/u16/u32/u64")
    if isinstance(obj, float):
        return Value(ValueType.FLOAT, obj)
    if isinstance(obj, str):
        return Value(ValueType.LONG_STRING, obj)
    if isinstance(obj, (bytes, bytearray)):
        return Value(ValueType.BINARY, obj)
    if isinstance(obj, FixedHash):
        return Value(ValueType.FIXED_HASH, obj)
    raise TypeError("unsupported value type: {}".format(type(obj).__name__))


# ── Per-kind codecs ──────────────────────────────────────────

_Decoder = Callable[[BinaryIO], Any]
_Encoder = Callable[[Any, BinaryIO], int]


def _fixed_codec(fmt: str) -> Tuple[_Decoder, _Encoder]:
    st = struct.Struct(fmt)

    def decode(reader: BinaryIO) -> Any:
        return st.unpack(read_exact(reader, st.size))[0]

    def encode(data: Any, writer: BinaryIO) -> int:
        writer.write(st.pack(data))
        return st.size

    return decode, encode


def _string_codec(len_fmt: str, max_len: int) -> Tuple[_Decoder, _Encoder]:
    prefix = struct.Struct(len_fmt)

    def decode(reader: BinaryIO) -> str:
        (n,) = prefix.unpack(read_exact(reader, prefix.size))
        raw = read_exact(reader, n)
        try:
            return raw.decode("utf-8", errors="strict")
        except UnicodeDecodeError:
            raise BlisterError(ERR_INVALID_UTF8, "invalid utf-8 in string payload", raw)

    def encode(data: str, writer: BinaryIO) -> int:
        try:
            raw = data.encode("utf-8", errors="strict")
        except UnicodeEncodeError:
            raise BlisterError(ERR_INVALID_UTF8, "string is not encodable as utf-8", data)
        if len(raw) > max_len:
            raise BlisterError(ERR_INTEGER_OVERFLOW,
                               "string of {} bytes exceeds {}".format(len(raw), max_len),
                               len(raw))
        writer.write(prefix.pack(len(raw)))
        writer.write(raw)
        return prefix.size + len(raw)

    return decode, encode


def _decode_binary(reader: BinaryIO) -> bytes:
    (n,) = struct.unpack("<I", read_exact(reader, 4))
    return read_exact(reader, n)


def _encode_binary(data: bytes, writer: BinaryIO) -> int:
    if len(data) > BINARY_MAX:
        raise BlisterError(ERR_INTEGER_OVERFLOW,
                           "binary of {} bytes exceeds {}".format(len(data), BINARY_MAX),
                           len(data))
    writer.write(struct.pack("<I", len(data)))
    writer.write(data)
    return 4 + len(data)


def _decode_bool(reader: BinaryIO) -> bool:
    b = read_exact(reader, 1)[0]
    if b not in (0x00, 0x01):
        raise BlisterError(ERR_INVALID_BOOLEAN,
                           "invalid boolean payload 0x{:02x}".format(b), b)
    return b == 0x01


def _encode_bool(data: bool, writer: BinaryIO) -> int:
    writer.write(b"\x01" if data else b"\x00")
    return 1


def _decode_fixed_hash(reader: BinaryIO) -> FixedHash:
    return FixedHash(read_exact(reader, FIXED_HASH_LEN))


def _encode_fixed_hash(data: FixedHash, writer: BinaryIO) -> int:
    writer.write(bytes(data))
    return FIXED_HASH_LEN


_CODECS: Dict[ValueType, Tuple[_Decoder, _Encoder]] = {
    ValueType.U8: _fixed_codec("<B"),
    ValueType.U16: _fixed_codec("<H"),
    ValueType.U32: _fixed_codec("<I"),
    ValueType.U64: _fixed_codec("<Q"),
    ValueType.SHORT_STRING: _string_codec("<B", SHORT_STRING_MAX),
    ValueType.LONG_STRING: _string_codec("<H", LONG_STRING_MAX),
    ValueType.BINARY: (_decode_binary, _encode_binary),
    ValueType.BOOL: (_decode_bool, _encode_bool),
    ValueType.FLOAT: _fixed_codec("<f"),
    ValueType.FIXED_HASH: (_decode_fixed_hash, _encode_fixed_hash),
}


# ── Public codec API ─────────────────────────────────────────

def decode_value(tag: int, reader: BinaryIO) -> Value:
    """Decode the payload for `tag` from reader."""
    try:
        vt = ValueType(tag)
    except ValueError:
        raise BlisterError(ERR_INVALID_DATA_TYPE,
                           "{} isn't a valid data type".format(tag), tag)
    decoder, _ = _CODECS[vt]
    return Value(vt, decoder(reader))


def encode_value(value: Value, writer: BinaryIO) -> int:
    """Write tag + payload; return the number of bytes written."""
    _, encoder = _CODECS[value.type]
    # Stage the payload so an overflow leaves nothing half-written.
    buf = io.BytesIO()
    n = encoder(value.data, buf)
    writer.write(bytes([value.type]) + buf.getvalue())
    return 1 + n


def check_key(key: Any) -> int:
    if isinstance(key, bool) or not isinstance(key, int):
        raise TypeError("map key must be int, got {}".format(type(key).__name__))
    if key < 0 or key > U32_MAX:
        raise BlisterError(ERR_INTEGER_OVERFLOW, "key {} out of u32 range".format(key), key)
    return key


def decode_entry(reader: BinaryIO) -> Tuple[int, Value]:
    """Decode one key(u32) + tag + payload entry."""
    (key,) = struct.unpack("<I", read_exact(reader, 4))
    tag = read_exact(reader, 1)[0]
    return key, decode_value(tag, reader)


def encode_entry(key: int, value: Value, writer: BinaryIO) -> int:
    """Encode one entry; return the number of bytes written."""
    head = struct.pack("<I", check_key(key))
    buf = io.BytesIO()
    n = encode_value(value, buf)
    writer.write(head + buf.getvalue())
    return 4 + n
