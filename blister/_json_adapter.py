"""JSON view of a decoded playlist.

Renders a Playlist as plain dicts/lists/strings that json.dumps() accepts,
for inspection from the command line.  The mapping is lossy on purpose and
one-way: it is a display format, not a second serialization of Blist.v3.

Value mapping:
    U8..U64, BOOL    → JSON number / boolean
    FLOAT            → JSON number (single-precision value widened)
    SHORT/LONG STRING→ JSON string
    BINARY           → base64 string
    FIXED_HASH       → 40-char lowercase hex string
"""

from __future__ import annotations

import base64
from typing import Any, Dict, List

from ._beatmap import Beatmap
from ._map import Map
from ._playlist import Playlist
from ._values import Value, ValueType


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def value_to_json(value: Value) -> Any:
    if value.type == ValueType.BINARY:
        return _b64(value.data)
    if value.type == ValueType.FIXED_HASH:
        return value.data.hex()
    return value.data


def custom_data_to_json(data: Map) -> List[Dict[str, Any]]:
    """Entries sorted by key, each tagged with its value kind."""
    return [
        {"key": k, "type": data[k].type.name, "value": value_to_json(data[k])}
        for k in sorted(data)
    ]


def beatmap_to_json(beatmap: Beatmap) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "type": beatmap.type.name,
        "date_added": beatmap.date_added.isoformat(),
    }
    if beatmap.key is not None:
        out["key"] = beatmap.key
    if beatmap.hash is not None:
        out["hash"] = beatmap.hash.hex()
    if beatmap.zip is not None:
        out["zip"] = _b64(beatmap.zip)
    if beatmap.level_id is not None:
        out["level_id"] = beatmap.level_id
    if beatmap.custom_data:
        out["custom_data"] = custom_data_to_json(beatmap.custom_data)
    return out


def playlist_to_json(playlist: Playlist) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "title": playlist.title,
        "author": playlist.author,
    }
    if playlist.description is not None:
        out["description"] = playlist.description
    if playlist.cover is not None:
        out["cover"] = _b64(playlist.cover)
    out["maps"] = [beatmap_to_json(b) for b in playlist.maps]
    if playlist.custom_data:
        out["custom_data"] = custom_data_to_json(playlist.custom_data)
    return out
