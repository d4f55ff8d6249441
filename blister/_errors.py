"""Blist.v3 error codes and exception class.

Every format or schema violation surfaces as a single BlisterError whose
`.code` names the violation and whose `.value` carries whatever was decoded
in its place, so a caller can render a precise diagnostic without parsing
the input again.  I/O failures are not wrapped: OSError, EOFError on a
truncated stream, and decompressor errors reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any

# ── Codec-level format violations ────────────────────────────
ERR_INVALID_DATA_TYPE: str = "ERR_INVALID_DATA_TYPE"    # tag byte outside 0..9
ERR_INVALID_BOOLEAN: str = "ERR_INVALID_BOOLEAN"        # bool byte not 0 or 1
ERR_INVALID_UTF8: str = "ERR_INVALID_UTF8"
ERR_INTEGER_OVERFLOW: str = "ERR_INTEGER_OVERFLOW"      # value or length too wide
ERR_MALFORMED_MAP: str = "ERR_MALFORMED_MAP"            # length prefix vs content

# ── Envelope ─────────────────────────────────────────────────
ERR_INVALID_MAGIC_NUMBER: str = "ERR_INVALID_MAGIC_NUMBER"

# ── Playlist fields ──────────────────────────────────────────
ERR_INVALID_PLAYLIST_TITLE: str = "ERR_INVALID_PLAYLIST_TITLE"
ERR_INVALID_PLAYLIST_AUTHOR: str = "ERR_INVALID_PLAYLIST_AUTHOR"
ERR_INVALID_PLAYLIST_DESCRIPTION: str = "ERR_INVALID_PLAYLIST_DESCRIPTION"
ERR_INVALID_PLAYLIST_COVER: str = "ERR_INVALID_PLAYLIST_COVER"

# ── Beatmap fields ───────────────────────────────────────────
ERR_INVALID_BEATMAP_TYPE: str = "ERR_INVALID_BEATMAP_TYPE"
ERR_INVALID_BEATMAP_DATE_ADDED: str = "ERR_INVALID_BEATMAP_DATE_ADDED"
ERR_INVALID_BEATMAP_KEY: str = "ERR_INVALID_BEATMAP_KEY"
ERR_INVALID_BEATMAP_HASH: str = "ERR_INVALID_BEATMAP_HASH"
ERR_INVALID_BEATMAP_ZIP: str = "ERR_INVALID_BEATMAP_ZIP"
ERR_INVALID_BEATMAP_LEVEL_ID: str = "ERR_INVALID_BEATMAP_LEVEL_ID"
ERR_MISSING_BEATMAP_KEY: str = "ERR_MISSING_BEATMAP_KEY"
ERR_MISSING_BEATMAP_HASH: str = "ERR_MISSING_BEATMAP_HASH"
ERR_MISSING_BEATMAP_ZIP: str = "ERR_MISSING_BEATMAP_ZIP"
ERR_MISSING_BEATMAP_LEVEL_ID: str = "ERR_MISSING_BEATMAP_LEVEL_ID"
ERR_STRICT_UNKNOWN_BEATMAP_TYPE: str = "ERR_STRICT_UNKNOWN_BEATMAP_TYPE"


class BlisterError(Exception):
    """Exception for Blist.v3 encode/decode errors.

    `.code` is one of the ERR_* strings above.  `.value` is the offending
    decoded value: a Value for a mistyped field, None for a missing one,
    the raw integer for an unknown beatmap type, or the raw signature bytes.
    """

    def __init__(self, code: str, msg: str = "", value: Any = None) -> None:
        super().__init__(msg or code)
        self.code = code
        self.value = value
