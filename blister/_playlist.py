"""Playlist document and the Blist.v3 file envelope.

File layout:

    b"Blist.v3"                      8-byte signature, uncompressed
    gzip(
        metadata map                 title/author/description/cover + custom
        u32 LE beatmap count
        beatmap map * count
    )

Reading is a straight pipeline: signature, decompress, metadata, count,
beatmaps.  Any failure aborts the whole read; there is no resync marker.
"""

from __future__ import annotations

import gzip
import hmac
import io
import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from ._beatmap import Beatmap, BeatmapType
from ._constants import (
    DEFAULT_COMPRESSION_LEVEL,
    MAGIC_NUMBER,
    MAGIC_NUMBER_LEN,
    PLAYLIST_AUTHOR,
    PLAYLIST_COVER,
    PLAYLIST_DESCRIPTION,
    PLAYLIST_TITLE,
    U32_MAX,
)
from ._errors import (
    ERR_INTEGER_OVERFLOW,
    ERR_INVALID_MAGIC_NUMBER,
    ERR_INVALID_PLAYLIST_AUTHOR,
    ERR_INVALID_PLAYLIST_COVER,
    ERR_INVALID_PLAYLIST_DESCRIPTION,
    ERR_INVALID_PLAYLIST_TITLE,
    BlisterError,
)
from ._map import Map
from ._values import Value, ValueType, read_exact

log = logging.getLogger(__name__)


def check_magic_number(signature: bytes) -> None:
    # Constant time, so a near-miss takes as long to reject as garbage.
    if not hmac.compare_digest(signature, MAGIC_NUMBER):
        raise BlisterError(
            ERR_INVALID_MAGIC_NUMBER,
            "invalid magic number, expected {!r}, got {!r}".format(MAGIC_NUMBER, signature),
            signature,
        )


@dataclass
class Playlist:
    title: str
    author: str
    description: Optional[str] = None
    cover: Optional[bytes] = None

    maps: List[Beatmap] = field(default_factory=list)

    custom_data: Map = field(default_factory=Map)

    # ── Decode ───────────────────────────────────────────────

    @classmethod
    def read(cls, reader: BinaryIO, strict: bool = True) -> "Playlist":
        """Decode a playlist file from a binary stream.

        The signature is checked before any decompression happens.  The
        rest of the stream is treated as the gzip payload.
        """
        check_magic_number(read_exact(reader, MAGIC_NUMBER_LEN))

        with gzip.GzipFile(fileobj=reader, mode="rb") as payload:
            data = Map.read(payload)

            title = data.take_required(PLAYLIST_TITLE, ValueType.SHORT_STRING,
                                       ERR_INVALID_PLAYLIST_TITLE)
            author = data.take_required(PLAYLIST_AUTHOR, ValueType.SHORT_STRING,
                                        ERR_INVALID_PLAYLIST_AUTHOR)
            description = data.take_optional(PLAYLIST_DESCRIPTION, ValueType.LONG_STRING,
                                             ERR_INVALID_PLAYLIST_DESCRIPTION)
            cover = data.take_optional(PLAYLIST_COVER, ValueType.BINARY,
                                       ERR_INVALID_PLAYLIST_COVER)

            (map_count,) = struct.unpack("<I", read_exact(payload, 4))
            log.debug("reading playlist %r: %d beatmaps, %d custom fields",
                      title, map_count, len(data))

            maps: List[Beatmap] = []
            for _ in range(map_count):
                beatmap = Beatmap.read(payload, strict)
                if beatmap.type == BeatmapType.UNKNOWN:
                    log.warning("playlist %r: beatmap %d has an unrecognised type",
                                title, len(maps))
                maps.append(beatmap)

        return cls(
            title=title,
            author=author,
            description=description,
            cover=cover,
            maps=maps,
            custom_data=data,
        )

    @classmethod
    def from_bytes(cls, raw: bytes, strict: bool = True) -> "Playlist":
        return cls.read(io.BytesIO(raw), strict)

    @classmethod
    def load(cls, path: Union[str, Path], strict: bool = True) -> "Playlist":
        with open(path, "rb") as f:
            return cls.read(f, strict)

    # ── Encode ───────────────────────────────────────────────

    def to_map(self) -> Map:
        """Custom data merged with the reserved metadata fields."""
        data = self.custom_data.copy()
        data[PLAYLIST_TITLE] = Value.short_string(self.title)
        data[PLAYLIST_AUTHOR] = Value.short_string(self.author)
        if self.description is not None:
            data[PLAYLIST_DESCRIPTION] = Value.long_string(self.description)
        if self.cover is not None:
            data[PLAYLIST_COVER] = Value.binary(self.cover)
        return data

    def payload_bytes(self) -> bytes:
        """The uncompressed body: metadata map, count, beatmaps."""
        if len(self.maps) > U32_MAX:
            raise BlisterError(ERR_INTEGER_OVERFLOW,
                               "{} beatmaps exceed u32 count".format(len(self.maps)),
                               len(self.maps))
        buf = io.BytesIO()
        self.to_map().write(buf)
        buf.write(struct.pack("<I", len(self.maps)))
        for beatmap in self.maps:
            beatmap.write(buf)
        return buf.getvalue()

    def write(self, writer: BinaryIO, level: int = DEFAULT_COMPRESSION_LEVEL) -> int:
        """Write the full file (signature + compressed payload).

        Returns the number of bytes written.  mtime is pinned to 0 so the
        same playlist always produces the same bytes.
        """
        if not 0 <= level <= 9:
            raise ValueError("compression level must be 0..9, got {}".format(level))
        payload = self.payload_bytes()
        compressed = gzip.compress(payload, compresslevel=level, mtime=0)
        log.debug("writing playlist %r: %d beatmaps, %d -> %d bytes at level %d",
                  self.title, len(self.maps), len(payload), len(compressed), level)
        writer.write(MAGIC_NUMBER + compressed)
        return MAGIC_NUMBER_LEN + len(compressed)

    def to_bytes(self, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
        buf = io.BytesIO()
        self.write(buf, level)
        return buf.getvalue()

    def save(self, path: Union[str, Path], level: int = DEFAULT_COMPRESSION_LEVEL) -> None:
        """Atomic write to path via a temporary sibling file."""
        p = Path(path)
        tmp = p.with_suffix(p.suffix + ".tmp")
        raw = self.to_bytes(level)
        try:
            tmp.write_bytes(raw)
            tmp.replace(p)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
