"""Blist.v3 command-line interface.

Usage:
    python3 -m blister show playlist.blist [--lenient]
    python3 -m blister verify playlist.blist [--lenient]
    python3 -m blister repack in.blist out.blist [--level N]
    python3 -m blister version
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import zlib
from typing import List, Optional

from . import (
    BlisterError,
    DEFAULT_COMPRESSION_LEVEL,
    Playlist,
    __version__,
    playlist_to_json,
)

log = logging.getLogger(__name__)


def _level(raw: str) -> int:
    level = int(raw)
    if not 0 <= level <= 9:
        raise argparse.ArgumentTypeError("level must be 0..9")
    return level


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blister",
        description="Blist.v3 — read, check and rewrite beatmap playlists",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log decode/encode details to stderr")
    sub = parser.add_subparsers(dest="command")

    # ── show ──
    show_p = sub.add_parser("show", help="Print a playlist as JSON")
    show_p.add_argument("file", metavar="FILE")
    show_p.add_argument("--lenient", action="store_true",
                        help="Accept beatmaps with an unknown type")

    # ── verify ──
    verify_p = sub.add_parser("verify", help="Decode a playlist and print a summary")
    verify_p.add_argument("file", metavar="FILE")
    verify_p.add_argument("--lenient", action="store_true",
                          help="Accept beatmaps with an unknown type")

    # ── repack ──
    repack_p = sub.add_parser("repack", help="Decode a playlist and write it back out")
    repack_p.add_argument("file", metavar="FILE")
    repack_p.add_argument("output", metavar="OUTPUT")
    repack_p.add_argument("--level", type=_level, default=DEFAULT_COMPRESSION_LEVEL,
                          help="gzip compression level 0..9 (default: %(default)s)")
    repack_p.add_argument("--lenient", action="store_true",
                          help="Accept beatmaps with an unknown type")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _cmd_show(args: argparse.Namespace) -> None:
    playlist = Playlist.load(args.file, strict=not args.lenient)
    print(json.dumps(playlist_to_json(playlist), indent=2, ensure_ascii=False))


def _cmd_verify(args: argparse.Namespace) -> None:
    playlist = Playlist.load(args.file, strict=not args.lenient)
    print("{}: ok, {!r} by {!r}, {} beatmaps".format(
        args.file, playlist.title, playlist.author, len(playlist.maps)))


def _cmd_repack(args: argparse.Namespace) -> None:
    playlist = Playlist.load(args.file, strict=not args.lenient)
    playlist.save(args.output, level=args.level)
    log.info("repacked %s -> %s at level %d", args.file, args.output, args.level)


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"blister {__version__}")
        return

    try:
        if args.command == "show":
            _cmd_show(args)
        elif args.command == "verify":
            _cmd_verify(args)
        elif args.command == "repack":
            _cmd_repack(args)
    except BlisterError as e:
        print(f"blister: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except EOFError as e:
        print(f"blister: truncated input: {e}", file=sys.stderr)
        sys.exit(2)
    except (OSError, zlib.error) as e:
        print(f"blister: I/O error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
