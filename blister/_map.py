"""Blist.v3 typed map — an unordered u32-keyed dictionary of Values.

Wire framing: a u32 LE byte length followed by that many bytes of
entries.  The length prefix is what lets several maps sit back to back in
one stream (playlist metadata followed by N beatmaps); a reader never
consumes bytes past its own window.

Record decoders use the map as working storage: take_required() and
take_optional() pull out the reserved fields one at a time, and whatever
is left over is the record's custom data, written back unchanged.
"""

from __future__ import annotations

import io
import struct
from collections.abc import MutableMapping
from typing import Any, BinaryIO, Dict, Iterator, Optional

from ._constants import U32_MAX
from ._errors import ERR_INTEGER_OVERFLOW, ERR_MALFORMED_MAP, BlisterError
from ._values import (
    Value,
    ValueType,
    check_key,
    coerce_value,
    decode_entry,
    encode_entry,
    read_exact,
)


class Map(MutableMapping):
    """Dictionary from u32 keys to Values.

    Assignment accepts a Value or an unambiguous Python native (see
    coerce_value).  Equality is content equality; iteration order carries
    no meaning.
    """

    def __init__(self, entries: Any = None) -> None:
        self._entries: Dict[int, Value] = {}
        if entries is not None:
            items = entries.items() if hasattr(entries, "items") else entries
            for k, v in items:
                self[k] = v

    # ── MutableMapping protocol ──────────────────────────────

    def __getitem__(self, key: int) -> Value:
        return self._entries[key]

    def __setitem__(self, key: int, value: Any) -> None:
        self._entries[check_key(key)] = coerce_value(value)

    def __delitem__(self, key: int) -> None:
        del self._entries[key]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        body = ", ".join("{}: {!r}".format(k, v) for k, v in sorted(self._entries.items()))
        return "Map({" + body + "})"

    # ── Dictionary helpers ───────────────────────────────────

    def insert(self, key: int, value: Any) -> Optional[Value]:
        """Set key to value and return the value it replaced, if any."""
        prior = self._entries.get(key)
        self[key] = value
        return prior

    def remove(self, key: int) -> Optional[Value]:
        """Delete key and return its value, or None if it was absent."""
        return self._entries.pop(key, None)

    def copy(self) -> "Map":
        dup = Map()
        dup._entries = dict(self._entries)
        return dup

    # ── Typed field extraction ───────────────────────────────

    def take_required(self, key: int, value_type: ValueType, code: str) -> Any:
        """Remove a mandatory field and return its payload.

        Raises BlisterError(code) carrying the offending Value (or None when
        the field is missing) if the field is absent or of the wrong kind.
        """
        value = self.remove(key)
        if value is None or value.type != value_type:
            raise BlisterError(
                code,
                "field {}: expected {}, got {!r}".format(key, value_type.name, value),
                value,
            )
        return value.data

    def take_optional(self, key: int, value_type: ValueType, code: str) -> Any:
        """Like take_required(), but an absent field yields None."""
        value = self.remove(key)
        if value is None:
            return None
        if value.type != value_type:
            raise BlisterError(
                code,
                "field {}: expected optional {}, got {!r}".format(key, value_type.name, value),
                value,
            )
        return value.data

    # ── Wire format ──────────────────────────────────────────

    def write(self, writer: BinaryIO) -> int:
        """Write the length-prefixed map; return the number of bytes written."""
        buf = io.BytesIO()
        total = 0
        for k, v in self._entries.items():
            total += encode_entry(k, v, buf)
        if total > U32_MAX:
            raise BlisterError(ERR_INTEGER_OVERFLOW,
                               "map body of {} bytes exceeds u32 length".format(total), total)
        writer.write(struct.pack("<I", total) + buf.getvalue())
        return 4 + total

    @classmethod
    def read(cls, reader: BinaryIO) -> "Map":
        """Read one length-prefixed map.

        The declared length is read as a single window first, so a bad entry
        can never pull bytes that belong to whatever follows the map.
        """
        (n,) = struct.unpack("<I", read_exact(reader, 4))
        window = io.BytesIO(read_exact(reader, n))
        m = cls()
        while window.tell() < n:
            try:
                key, value = decode_entry(window)
            except EOFError:
                raise BlisterError(ERR_MALFORMED_MAP,
                                   "entry runs past declared map length {}".format(n), n)
            m._entries[key] = value
        return m

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.write(buf)
        return buf.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Map":
        """Decode a map that must span all of `data`."""
        reader = io.BytesIO(data)
        m = cls.read(reader)
        if reader.tell() != len(data):
            raise BlisterError(ERR_MALFORMED_MAP,
                               "{} trailing bytes after map".format(len(data) - reader.tell()),
                               len(data) - reader.tell())
        return m
