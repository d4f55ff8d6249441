"""Beatmap record — one playlist entry, stored as a single typed map.

Reserved fields:

    0  type        U8          required
    1  date_added  U64         required, Unix seconds (UTC)
    2  key         U32         optional, required when type == KEY
    3  hash        FIXED_HASH  optional, required when type == HASH
    4  zip         BINARY      optional, required when type == ZIP
    5  level_id    SHORT_STRING optional, required when type == LEVEL_ID

Anything else is kept in custom_data and written back as-is.
"""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

from ._constants import (
    BEATMAP_DATE_ADDED,
    BEATMAP_HASH,
    BEATMAP_KEY,
    BEATMAP_LEVEL_ID,
    BEATMAP_TYPE,
    BEATMAP_ZIP,
    U64_MAX,
)
from ._errors import (
    ERR_INTEGER_OVERFLOW,
    ERR_INVALID_BEATMAP_DATE_ADDED,
    ERR_INVALID_BEATMAP_HASH,
    ERR_INVALID_BEATMAP_KEY,
    ERR_INVALID_BEATMAP_LEVEL_ID,
    ERR_INVALID_BEATMAP_TYPE,
    ERR_INVALID_BEATMAP_ZIP,
    ERR_MISSING_BEATMAP_HASH,
    ERR_MISSING_BEATMAP_KEY,
    ERR_MISSING_BEATMAP_LEVEL_ID,
    ERR_MISSING_BEATMAP_ZIP,
    ERR_STRICT_UNKNOWN_BEATMAP_TYPE,
    BlisterError,
)
from ._map import Map
from ._values import FixedHash, Value, ValueType


class BeatmapType(enum.IntEnum):
    """How a beatmap is identified.  The value is the stored U8."""

    KEY = 0
    HASH = 1
    ZIP = 2
    LEVEL_ID = 3

    UNKNOWN = 255

    @classmethod
    def from_raw(cls, raw: int) -> "BeatmapType":
        if 0 <= raw <= 3:
            return cls(raw)
        return cls.UNKNOWN


# type -> (attribute that must be set, error when it isn't)
_REQUIRED_BY_TYPE = {
    BeatmapType.KEY: ("key", ERR_MISSING_BEATMAP_KEY),
    BeatmapType.HASH: ("hash", ERR_MISSING_BEATMAP_HASH),
    BeatmapType.ZIP: ("zip", ERR_MISSING_BEATMAP_ZIP),
    BeatmapType.LEVEL_ID: ("level_id", ERR_MISSING_BEATMAP_LEVEL_ID),
}

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def _utc_now() -> datetime.datetime:
    # Whole seconds only: that is all the wire format keeps.
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)


def timestamp_to_datetime(seconds: int) -> datetime.datetime:
    try:
        return _EPOCH + datetime.timedelta(seconds=seconds)
    except OverflowError:
        raise BlisterError(ERR_INTEGER_OVERFLOW,
                           "timestamp {} out of datetime range".format(seconds), seconds)


def datetime_to_timestamp(dt: datetime.datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    seconds = int((dt - _EPOCH).total_seconds())
    if seconds < 0 or seconds > U64_MAX:
        raise BlisterError(ERR_INTEGER_OVERFLOW,
                           "date {} can't be stored as unsigned Unix seconds".format(dt.isoformat()),
                           seconds)
    return seconds


@dataclass
class Beatmap:
    type: BeatmapType
    date_added: datetime.datetime

    key: Optional[int] = None
    hash: Optional[FixedHash] = None
    zip: Optional[bytes] = None
    level_id: Optional[str] = None

    custom_data: Map = field(default_factory=Map)

    @classmethod
    def from_key(cls, key: int) -> "Beatmap":
        return cls(BeatmapType.KEY, _utc_now(), key=key)

    @classmethod
    def from_hash(cls, hash: FixedHash) -> "Beatmap":
        return cls(BeatmapType.HASH, _utc_now(), hash=hash)

    @classmethod
    def from_zip(cls, zip: bytes) -> "Beatmap":
        return cls(BeatmapType.ZIP, _utc_now(), zip=bytes(zip))

    @classmethod
    def from_level_id(cls, level_id: str) -> "Beatmap":
        return cls(BeatmapType.LEVEL_ID, _utc_now(), level_id=level_id)

    @classmethod
    def read(cls, reader: BinaryIO, strict: bool = True) -> "Beatmap":
        """Decode one beatmap map from reader.

        With strict=True an unrecognised type byte is an error; otherwise it
        decodes as BeatmapType.UNKNOWN and only the type-independent fields
        are required.
        """
        data = Map.read(reader)

        raw_type = data.take_required(BEATMAP_TYPE, ValueType.U8, ERR_INVALID_BEATMAP_TYPE)
        ty = BeatmapType.from_raw(raw_type)
        if strict and ty == BeatmapType.UNKNOWN:
            raise BlisterError(
                ERR_STRICT_UNKNOWN_BEATMAP_TYPE,
                "encountered a beatmap with unknown type {} in strict mode".format(raw_type),
                raw_type,
            )

        seconds = data.take_required(BEATMAP_DATE_ADDED, ValueType.U64,
                                     ERR_INVALID_BEATMAP_DATE_ADDED)

        beatmap = cls(
            type=ty,
            date_added=timestamp_to_datetime(seconds),
            key=data.take_optional(BEATMAP_KEY, ValueType.U32, ERR_INVALID_BEATMAP_KEY),
            hash=data.take_optional(BEATMAP_HASH, ValueType.FIXED_HASH,
                                    ERR_INVALID_BEATMAP_HASH),
            zip=data.take_optional(BEATMAP_ZIP, ValueType.BINARY, ERR_INVALID_BEATMAP_ZIP),
            level_id=data.take_optional(BEATMAP_LEVEL_ID, ValueType.SHORT_STRING,
                                        ERR_INVALID_BEATMAP_LEVEL_ID),
            custom_data=data,
        )

        # Only the identifier matching the type is mandatory; the others
        # may be present and are kept.
        required = _REQUIRED_BY_TYPE.get(ty)
        if required is not None:
            attr, code = required
            if getattr(beatmap, attr) is None:
                raise BlisterError(
                    code, "missing beatmap {} for {} identified beatmap".format(attr, ty.name))
        return beatmap

    def to_map(self) -> Map:
        """Custom data merged with the reserved fields, ready to write."""
        data = self.custom_data.copy()
        data[BEATMAP_TYPE] = Value.u8(int(self.type))
        data[BEATMAP_DATE_ADDED] = Value.u64(datetime_to_timestamp(self.date_added))
        if self.key is not None:
            data[BEATMAP_KEY] = Value.u32(self.key)
        if self.hash is not None:
            data[BEATMAP_HASH] = Value.fixed_hash(self.hash)
        if self.zip is not None:
            data[BEATMAP_ZIP] = Value.binary(self.zip)
        if self.level_id is not None:
            data[BEATMAP_LEVEL_ID] = Value.short_string(self.level_id)
        return data

    def write(self, writer: BinaryIO) -> int:
        return self.to_map().write(writer)
