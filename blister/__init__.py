"""blister — Blist.v3 beatmap playlist format for Python.

Read and write `.blist` playlists: a gzip-compressed sequence of typed
key/value maps behind an 8-byte "Blist.v3" signature.

Quick start:
    >>> from blister import Beatmap, Playlist
    >>> playlist = Playlist(title="favourites", author="me")
    >>> playlist.maps.append(Beatmap.from_key(0x2112))
    >>> raw = playlist.to_bytes()
    >>> Playlist.from_bytes(raw).maps[0].key
    8466

Fields the schema doesn't know about are kept in `custom_data` and
written back untouched, so older readers don't drop newer data:
    >>> from blister import Value
    >>> playlist.custom_data[2112] = Value.float32(1.5)
    >>> Playlist.from_bytes(playlist.to_bytes()).custom_data[2112]
    Value.FLOAT(1.5)
"""

from __future__ import annotations

from ._beatmap import Beatmap, BeatmapType
from ._constants import DEFAULT_COMPRESSION_LEVEL, MAGIC_NUMBER
from ._errors import (
    ERR_INTEGER_OVERFLOW,
    ERR_INVALID_BEATMAP_DATE_ADDED,
    ERR_INVALID_BEATMAP_HASH,
    ERR_INVALID_BEATMAP_KEY,
    ERR_INVALID_BEATMAP_LEVEL_ID,
    ERR_INVALID_BEATMAP_TYPE,
    ERR_INVALID_BEATMAP_ZIP,
    ERR_INVALID_BOOLEAN,
    ERR_INVALID_DATA_TYPE,
    ERR_INVALID_MAGIC_NUMBER,
    ERR_INVALID_PLAYLIST_AUTHOR,
    ERR_INVALID_PLAYLIST_COVER,
    ERR_INVALID_PLAYLIST_DESCRIPTION,
    ERR_INVALID_PLAYLIST_TITLE,
    ERR_INVALID_UTF8,
    ERR_MALFORMED_MAP,
    ERR_MISSING_BEATMAP_HASH,
    ERR_MISSING_BEATMAP_KEY,
    ERR_MISSING_BEATMAP_LEVEL_ID,
    ERR_MISSING_BEATMAP_ZIP,
    ERR_STRICT_UNKNOWN_BEATMAP_TYPE,
    BlisterError,
)
from ._json_adapter import playlist_to_json
from ._map import Map
from ._playlist import Playlist
from ._values import (
    FixedHash,
    Value,
    ValueType,
    decode_entry,
    decode_value,
    encode_entry,
    encode_value,
)

__version__ = "3.0.0"

__all__ = [
    # Records
    "Playlist",
    "Beatmap",
    "BeatmapType",
    # Codec
    "Map",
    "Value",
    "ValueType",
    "FixedHash",
    "decode_value",
    "encode_value",
    "decode_entry",
    "encode_entry",
    "playlist_to_json",
    # Constants
    "MAGIC_NUMBER",
    "DEFAULT_COMPRESSION_LEVEL",
    # Exception
    "BlisterError",
    # Error codes
    "ERR_INVALID_DATA_TYPE",
    "ERR_INVALID_BOOLEAN",
    "ERR_INVALID_UTF8",
    "ERR_INTEGER_OVERFLOW",
    "ERR_MALFORMED_MAP",
    "ERR_INVALID_MAGIC_NUMBER",
    "ERR_INVALID_PLAYLIST_TITLE",
    "ERR_INVALID_PLAYLIST_AUTHOR",
    "ERR_INVALID_PLAYLIST_DESCRIPTION",
    "ERR_INVALID_PLAYLIST_COVER",
    "ERR_INVALID_BEATMAP_TYPE",
    "ERR_INVALID_BEATMAP_DATE_ADDED",
    "ERR_INVALID_BEATMAP_KEY",
    "ERR_INVALID_BEATMAP_HASH",
    "ERR_INVALID_BEATMAP_ZIP",
    "ERR_INVALID_BEATMAP_LEVEL_ID",
    "ERR_MISSING_BEATMAP_KEY",
    "ERR_MISSING_BEATMAP_HASH",
    "ERR_MISSING_BEATMAP_ZIP",
    "ERR_MISSING_BEATMAP_LEVEL_ID",
    "ERR_STRICT_UNKNOWN_BEATMAP_TYPE",
]
