#!/usr/bin/env python3
"""
scan_names.py — list UTF-16LE name candidates in a .sl2 save.

For each hit: offset, decoded name, raw window, surrounding bytes, and two hint
bytes (level at +0x24, active status at -4). Hints are NOT checked fields,
just what sits at the place a header record would put them.

With --propose, hits are folded into candidate header_start values for the
given header length; verify one with show_slots.py --header-start.

Usage:
    python scan_names.py saves/ER0000.sl2 --limit 10
    python scan_names.py saves/ER0000.sl2 --start 0x1901000 --end 0x1904000 --rich
    python scan_names.py saves/NR0000.sl2 --start 0x1000000 --propose
"""
from __future__ import annotations
import argparse
import logging

from name_scanner import hex_bytes, hexdump_slice, propose_header_starts, scan_names
from save_layout import SLOT_COUNT, constants_for, detect_variant, parse_offset

log = logging.getLogger("scan_names")


def _hint(value, off: int) -> str:
    return f"{value} @0x{off:x}" if value is not None else "n/a"


def main(argv=None) -> None:
    ap = argparse.ArgumentParser(description="Scan a save for UTF-16LE character names")
    ap.add_argument("savefile", help="Path to save file")
    ap.add_argument("--start", default="0", help="Scan from this offset (hex 0x... or decimal)")
    ap.add_argument("--end", default=None, help="Stop scanning at this offset")
    ap.add_argument("--limit", type=int, default=0, help="Stop after N hits (0 = all)")
    ap.add_argument("--rich", action="store_true", help="Wider context window (64 bytes after the name)")
    ap.add_argument("--debug", action="store_true", help="Hexdump around each hit instead of one-line context")
    ap.add_argument("--propose", action="store_true", help="Propose header_start values from the hits")
    ap.add_argument("--header-length", default=None, help="Header record length for --propose (default: from variant)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    with open(args.savefile, "rb") as f:
        data = f.read()

    try:
        start = parse_offset(args.start)
        end = parse_offset(args.end) if args.end is not None else None
    except ValueError as e:
        raise SystemExit(f"bad offset: {e}")
    print(f"[scan] {len(data)} bytes, range 0x{start:x}..0x{(end if end is not None else len(data)):x}")

    hits = []
    for c in scan_names(data, start, end, rich=args.rich):
        hits.append(c)
        print(f"\nPotential character at offset 0x{c.offset:X}:")
        print(f"Name: {c.text}")
        print(f"Raw bytes: {hex_bytes(c.raw)}")
        if args.debug:
            print(hexdump_slice(data, c.context_start, length=len(c.context)))
        else:
            print(f"Surrounding bytes (from 0x{c.context_start:X}): {hex_bytes(c.context)}")
        print(f"Level hint: {_hint(c.level_hint, c.level_hint_offset)}  "
              f"Active hint: {_hint(c.active_hint, c.active_hint_offset)}")
        if args.limit and len(hits) >= args.limit:
            log.debug("limit of %d hits reached at 0x%x", args.limit, c.offset)
            break
    print(f"\n[scan] hits: {len(hits)}")

    if args.propose:
        if args.header_length is not None:
            header_length = parse_offset(args.header_length)
        else:
            header_length = constants_for(detect_variant(len(data))).header_length
        proposals = propose_header_starts(hits, header_length, SLOT_COUNT)
        if not proposals:
            print("[propose] no header_start backed by 2+ hits")
            return
        print(f"[propose] header_length=0x{header_length:x}")
        for base, votes in proposals[:5]:
            print(f"  - header_start 0x{base:x}  ({votes} hits)")


if __name__ == "__main__":
    main()
