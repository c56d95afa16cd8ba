#!/usr/bin/env python3
"""
find_name_offsets.py — recherche toutes les occurrences d'un nom de personnage dans un .sl2
et affiche leurs offsets (hex et décimal), en signalant ceux qui tombent sur un en-tête de slot connu.
"""

import argparse

from name_scanner import find_name_offsets
from save_layout import SLOT_COUNT, constants_for, detect_variant


def main(argv=None):
    ap = argparse.ArgumentParser(description="Find all offsets of a character name in a save file")
    ap.add_argument("savefile", help="Path to the .sl2 file")
    ap.add_argument("name", help="Character name as visible in game")
    ap.add_argument("--loose", action="store_true", help="Do not require a 00 00 terminator after the name")
    args = ap.parse_args(argv)

    with open(args.savefile, "rb") as f:
        data = f.read()

    try:
        offs = find_name_offsets(data, args.name, terminated=not args.loose)
    except ValueError as e:
        raise SystemExit(str(e))

    if not offs:
        print(f"No occurrence of '{args.name}' found.")
        return

    c = constants_for(detect_variant(len(data)))
    print(f"Found {len(offs)} occurrence(s) of '{args.name}':")
    for o in offs:
        line = f"  - offset {o} (0x{o:x})"
        # cet offset serait le nom du slot k si header_start = o - k*header_length
        delta = o - c.header_start
        if delta >= 0 and delta % c.header_length == 0 and delta // c.header_length < SLOT_COUNT:
            line += f"  = slot {delta // c.header_length} header"
        print(line)


if __name__ == "__main__":
    main()
