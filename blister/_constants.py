"""Blist.v3 constants — file signature, reserved field ids, and wire limits.

The reserved field ids are the only schema the format has: everything
outside them is carried as opaque custom data.
"""

from __future__ import annotations

import os

__format_version__ = "3"

# 8-byte ASCII signature at the start of every playlist file.
# There is exactly one supported version; any other signature is rejected.
MAGIC_NUMBER = b"Blist.v3"
MAGIC_NUMBER_LEN: int = len(MAGIC_NUMBER)

FIXED_HASH_LEN: int = 20

# Upper bound on a single read() request while filling a declared length.
READ_CHUNK: int = 1 << 16

# ── Wire widths ──────────────────────────────────────────────
U8_MAX: int = 0xFF
U16_MAX: int = 0xFFFF
U32_MAX: int = 0xFFFFFFFF
U64_MAX: int = 0xFFFFFFFFFFFFFFFF

SHORT_STRING_MAX: int = U8_MAX
LONG_STRING_MAX: int = U16_MAX
BINARY_MAX: int = U32_MAX

# ── Playlist metadata map (fields >= 4 are custom data) ──────
PLAYLIST_TITLE: int = 0
PLAYLIST_AUTHOR: int = 1
PLAYLIST_DESCRIPTION: int = 2
PLAYLIST_COVER: int = 3

# ── Beatmap map (fields >= 6 are custom data) ────────────────
BEATMAP_TYPE: int = 0
BEATMAP_DATE_ADDED: int = 1
BEATMAP_KEY: int = 2
BEATMAP_HASH: int = 3
BEATMAP_ZIP: int = 4
BEATMAP_LEVEL_ID: int = 5

# ── Compression ──────────────────────────────────────────────
# gzip levels run 0 (store) to 9 (smallest).  The environment override is
# read once at import so a long-running process sees a stable default.
_BUILTIN_COMPRESSION_LEVEL: int = 6


def _env_compression_level() -> int:
    raw = os.environ.get("BLISTER_COMPRESSION_LEVEL", "")
    try:
        level = int(raw)
    except ValueError:
        return _BUILTIN_COMPRESSION_LEVEL
    if 0 <= level <= 9:
        return level
    return _BUILTIN_COMPRESSION_LEVEL


DEFAULT_COMPRESSION_LEVEL: int = _env_compression_level()
