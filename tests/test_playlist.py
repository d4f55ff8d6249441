"""Unit tests for the playlist document and the Blist.v3 envelope."""

from __future__ import annotations

import gzip
import io
import os
import struct
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from blister import (
    Beatmap,
    BeatmapType,
    BlisterError,
    ERR_INVALID_MAGIC_NUMBER,
    ERR_INVALID_PLAYLIST_AUTHOR,
    ERR_INVALID_PLAYLIST_COVER,
    ERR_INVALID_PLAYLIST_DESCRIPTION,
    ERR_INVALID_PLAYLIST_TITLE,
    ERR_MISSING_BEATMAP_KEY,
    ERR_STRICT_UNKNOWN_BEATMAP_TYPE,
    FixedHash,
    MAGIC_NUMBER,
    Map,
    Playlist,
    Value,
    playlist_to_json,
)


def _sample() -> Playlist:
    playlist = Playlist(
        title="test playlist",
        author="me",
        description="description",
        cover=bytes([2, 1, 1, 2]),
    )
    playlist.custom_data[2112] = Value.float32(1.234)
    playlist.maps = [
        Beatmap.from_key(2112),
        Beatmap.from_hash(FixedHash(b"\x04" * 20)),
        Beatmap.from_zip(bytes(range(10))),
        Beatmap.from_level_id("level ID"),
    ]
    return playlist


def _file(metadata: Map, beatmaps=()) -> bytes:
    """Hand-build a file from raw maps, bypassing Playlist.write."""
    body = metadata.to_bytes() + struct.pack("<I", len(beatmaps))
    for m in beatmaps:
        body += m.to_bytes()
    return MAGIC_NUMBER + gzip.compress(body)


def _meta(**overrides) -> Map:
    m = Map({0: Value.short_string("t"), 1: Value.short_string("a")})
    for k, v in overrides.items():
        m[int(k.lstrip("f"))] = v
    return m


# ── End to end ────────────────────────────────────────────────

class TestEndToEnd(unittest.TestCase):
    def test_write_and_read(self):
        old = _sample()
        buf = io.BytesIO()
        n = old.write(buf)
        self.assertEqual(n, len(buf.getvalue()))

        buf.seek(0)
        new = Playlist.read(buf, strict=True)
        self.assertEqual(new, old)
        self.assertEqual(new.title, "test playlist")
        self.assertEqual(new.author, "me")
        self.assertEqual(new.description, "description")
        self.assertEqual(new.cover, b"\x02\x01\x01\x02")
        self.assertEqual(new.custom_data[2112], Value.float32(1.234))
        self.assertEqual([b.type for b in new.maps], [
            BeatmapType.KEY, BeatmapType.HASH, BeatmapType.ZIP, BeatmapType.LEVEL_ID,
        ])
        self.assertEqual(new.maps[0].key, 2112)
        self.assertEqual(new.maps[1].hash, FixedHash(b"\x04" * 20))
        self.assertEqual(new.maps[2].zip, bytes(range(10)))
        self.assertEqual(new.maps[3].level_id, "level ID")

    def test_starts_with_signature(self):
        raw = _sample().to_bytes()
        self.assertEqual(raw[:8], b"Blist.v3")
        # gzip member follows the signature directly.
        self.assertEqual(raw[8:10], b"\x1f\x8b")

    def test_output_is_deterministic(self):
        playlist = _sample()
        self.assertEqual(playlist.to_bytes(), playlist.to_bytes())

    def test_minimal_playlist(self):
        playlist = Playlist(title="", author="")
        self.assertEqual(Playlist.from_bytes(playlist.to_bytes()), playlist)

    def test_every_compression_level(self):
        playlist = _sample()
        for level in (0, 1, 9):
            with self.subTest(level=level):
                self.assertEqual(Playlist.from_bytes(playlist.to_bytes(level)), playlist)

    def test_bad_compression_level(self):
        with self.assertRaises(ValueError):
            _sample().to_bytes(level=10)

    def test_order_of_beatmaps_kept(self):
        playlist = Playlist(title="t", author="a",
                            maps=[Beatmap.from_key(k) for k in (5, 3, 9, 1)])
        again = Playlist.from_bytes(playlist.to_bytes())
        self.assertEqual([b.key for b in again.maps], [5, 3, 9, 1])

    def test_save_and_load(self):
        playlist = _sample()
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "sample.blist")
            playlist.save(path)
            self.assertEqual(Playlist.load(path), playlist)
            self.assertFalse(os.path.exists(path + ".tmp"))

    def test_failed_save_cleans_up(self):
        playlist = _sample()
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "sample.blist")
            with open(path, "wb") as f:
                f.write(b"previous")
            with mock.patch.object(Path, "replace", side_effect=OSError("disk full")):
                with self.assertRaises(OSError):
                    playlist.save(path)
            self.assertFalse(os.path.exists(path + ".tmp"))
            with open(path, "rb") as f:
                self.assertEqual(f.read(), b"previous")


# ── Custom data ───────────────────────────────────────────────

class TestCustomData(unittest.TestCase):
    def test_unknown_metadata_fields_survive(self):
        raw = _file(_meta(f4=Value.u16(4), f77=Value.binary(b"\x00\xff")))
        playlist = Playlist.from_bytes(raw)
        self.assertEqual(set(playlist.custom_data), {4, 77})
        again = Playlist.from_bytes(playlist.to_bytes())
        self.assertEqual(again.custom_data[77].data, b"\x00\xff")
        self.assertEqual(again.custom_data[4], Value.u16(4))

    def test_write_leaves_record_untouched(self):
        playlist = _sample()
        playlist.to_bytes()
        self.assertEqual(set(playlist.custom_data), {2112})


# ── Signature ─────────────────────────────────────────────────

class TestSignature(unittest.TestCase):
    def test_wrong_signature(self):
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(b"Blist.v2" + gzip.compress(b""))
        self.assertEqual(ctx.exception.code, ERR_INVALID_MAGIC_NUMBER)
        self.assertEqual(ctx.exception.value, b"Blist.v2")

    def test_checked_before_decompression(self):
        """Garbage after a bad signature is never handed to gzip."""
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(b"NotBlist" + b"\x00not gzip at all")
        self.assertEqual(ctx.exception.code, ERR_INVALID_MAGIC_NUMBER)

    def test_short_file(self):
        with self.assertRaises(EOFError):
            Playlist.from_bytes(b"Blist")


# ── Metadata fields ───────────────────────────────────────────

class TestMetadataFields(unittest.TestCase):
    def test_title_missing(self):
        m = Map({1: Value.short_string("a")})
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(_file(m))
        self.assertEqual(ctx.exception.code, ERR_INVALID_PLAYLIST_TITLE)

    def test_title_long_string(self):
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(_file(_meta(f0=Value.long_string("t"))))
        self.assertEqual(ctx.exception.code, ERR_INVALID_PLAYLIST_TITLE)
        self.assertEqual(ctx.exception.value, Value.long_string("t"))

    def test_author_wrong_kind(self):
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(_file(_meta(f1=Value.u8(1))))
        self.assertEqual(ctx.exception.code, ERR_INVALID_PLAYLIST_AUTHOR)

    def test_description_wrong_kind(self):
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(_file(_meta(f2=Value.short_string("d"))))
        self.assertEqual(ctx.exception.code, ERR_INVALID_PLAYLIST_DESCRIPTION)

    def test_cover_wrong_kind(self):
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(_file(_meta(f3=Value.long_string("c"))))
        self.assertEqual(ctx.exception.code, ERR_INVALID_PLAYLIST_COVER)

    def test_optional_fields_absent(self):
        playlist = Playlist.from_bytes(_file(_meta()))
        self.assertIsNone(playlist.description)
        self.assertIsNone(playlist.cover)
        self.assertEqual(playlist.maps, [])


# ── Beatmaps inside a file ────────────────────────────────────

class TestBeatmapsInFile(unittest.TestCase):
    def test_strict_propagates(self):
        unknown = Map({0: Value.u8(99), 1: Value.u64(0)})
        raw = _file(_meta(), [unknown])
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(raw, strict=True)
        self.assertEqual(ctx.exception.code, ERR_STRICT_UNKNOWN_BEATMAP_TYPE)
        with self.assertLogs("blister._playlist", "WARNING") as logs:
            lenient = Playlist.from_bytes(raw, strict=False)
        self.assertEqual(lenient.maps[0].type, BeatmapType.UNKNOWN)
        self.assertIn("unrecognised type", logs.output[0])

    def test_bad_beatmap_aborts_read(self):
        good = Map({0: Value.u8(0), 1: Value.u64(0), 2: Value.u32(1)})
        bad = Map({0: Value.u8(0), 1: Value.u64(0)})
        with self.assertRaises(BlisterError) as ctx:
            Playlist.from_bytes(_file(_meta(), [good, bad]))
        self.assertEqual(ctx.exception.code, ERR_MISSING_BEATMAP_KEY)

    def test_count_larger_than_payload(self):
        body = _meta().to_bytes() + struct.pack("<I", 3)
        with self.assertRaises(EOFError):
            Playlist.from_bytes(MAGIC_NUMBER + gzip.compress(body))


# ── JSON view ─────────────────────────────────────────────────

class TestJsonView(unittest.TestCase):
    def test_sample(self):
        view = playlist_to_json(_sample())
        self.assertEqual(view["title"], "test playlist")
        self.assertEqual(view["cover"], "AgEBAg==")
        self.assertEqual(view["custom_data"][0]["key"], 2112)
        self.assertEqual(view["custom_data"][0]["type"], "FLOAT")
        self.assertEqual([m["type"] for m in view["maps"]],
                         ["KEY", "HASH", "ZIP", "LEVEL_ID"])
        self.assertEqual(view["maps"][1]["hash"], "04" * 20)
        self.assertNotIn("custom_data", view["maps"][0])


if __name__ == "__main__":
    unittest.main()
