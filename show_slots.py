#!/usr/bin/env python3
"""
show_slots.py — list the character slots of a .sl2 save, or show one in detail.

- Variant picked from the file size unless --variant is given.
- Layout offsets can be overridden for one run (e.g. after scan_names.py
  proposed a new header start). Nothing is written back anywhere.
- --debug: hexdump of the header record of the selected slot.

Examples:
    # Active slots only
    python show_slots.py saves/ER0000.sl2

    # All ten slots, including empty ones
    python show_slots.py saves/ER0000.sl2 --all

    # One slot, with a hexdump of its header record
    python show_slots.py saves/ER0000.sl2 --slot 2 --debug

    # Try a different header start on a Nightreign save
    python show_slots.py saves/NR0000.sl2 --variant NR --header-start 0x1001D10
"""
from __future__ import annotations
import argparse
import logging
from dataclasses import replace
from typing import Dict, Optional

from name_scanner import hex_bytes, hexdump_slice
from save_container import SaveContainer
from save_layout import LayoutConstants, constants_for, detect_variant, format_layout, parse_offset, parse_variant
from slot_extractor import Slot

OVERRIDES = {
    "slot_start": "--slot-start",
    "slot_length": "--slot-length",
    "header_start": "--header-start",
    "header_length": "--header-length",
    "active_flag_table_start": "--active-start",
}


def apply_overrides(constants: LayoutConstants, args: argparse.Namespace) -> LayoutConstants:
    changes: Dict[str, int] = {}
    for field_name in OVERRIDES:
        value = getattr(args, field_name, None)
        if value is not None:
            changes[field_name] = parse_offset(value)
    return replace(constants, **changes) if changes else constants


def slot_line(slot: Slot) -> str:
    flag = "*" if slot.active else " "
    return (f"{flag} [{slot.index}] {slot.display_name!r:<20} lvl={slot.character_level:<3d} "
            f"played={slot.played}")


def print_slot(container: SaveContainer, slot: Slot, dump: Optional[int]) -> None:
    c = container.constants
    hdr = c.header_start + slot.index * c.header_length
    print(f"\n>>slot {slot.index} === {slot.display_name} ===   id={slot.id}")
    print(f"Active   : {slot.active}")
    print(f"Name     : {slot.character_name!r}")
    if slot.name_error is not None:
        print(f"           ({slot.name_error})")
    print(f"Level    : {slot.character_level}")
    print(f"Played   : {slot.played} ({slot.seconds_played} s)")
    print(f"Header   : @0x{hdr:x}  {len(slot.header_data)} bytes")
    print(f"Payload  : {len(slot.save_data)} bytes")
    print(f"Name raw : {hex_bytes(slot.header_data[:0x22])}")
    if dump:
        print("\n[hexdump]")
        print(hexdump_slice(container.raw_bytes, hdr, length=dump))


def main(argv=None) -> None:
    p = argparse.ArgumentParser(description="Show character slots of a .sl2 save")
    p.add_argument("savefile", help="Path to the save file (*.sl2)")
    p.add_argument("--slot", type=int, help="Show one slot (0-based) in detail")
    p.add_argument("--all", action="store_true", help="List inactive slots too")
    p.add_argument("--variant", help="Force the variant: A/ER or B/NR (default: from file size)")
    p.add_argument("--layout", action="store_true", help="Print the layout constants used")
    p.add_argument("--workers", type=int, default=None, help="Decode slots on N threads")
    p.add_argument("--debug", action="store_true", help="Hexdump the selected slot's header record")
    p.add_argument("--dump", type=int, default=0x60, help="Bytes to dump in --debug mode (default 0x60)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    # Surcharges de layout (une exécution seulement)
    for field_name, flag in OVERRIDES.items():
        p.add_argument(flag, dest=field_name, help=f"Override {field_name} (hex 0x... or decimal)")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    with open(args.savefile, "rb") as f:
        data = f.read()

    try:
        variant = parse_variant(args.variant) if args.variant else detect_variant(len(data))
        constants = apply_overrides(constants_for(variant), args)
    except ValueError as e:
        raise SystemExit(str(e))

    container = SaveContainer.load(data, constants=constants, variant=variant, workers=args.workers)
    print(f"[file] {len(data)} bytes -> {variant.name} ({variant.value})")
    if args.layout:
        print(format_layout(variant, constants))

    if container.failures:
        print(f"[fail] slots not decoded: {container.failed_indices}")
        for i in container.failed_indices:
            print(f"  - {i}: {container.failures[i]}")
    if container.looks_misdetected():
        print("[warn] nothing readable in this container; wrong variant or shifted offsets?")
    elif container.suspicious_slots():
        print(f"[warn] active slots with unreadable names: {container.suspicious_slots()}")

    if args.slot is not None:
        if not 0 <= args.slot < len(container):
            raise SystemExit(f"Slot index out of bounds: {args.slot}")
        slot = container[args.slot]
        if slot is None:
            raise SystemExit(f"Slot {args.slot} could not be decoded: {container.failures[args.slot]}")
        print_slot(container, slot, args.dump if args.debug else None)
        return

    shown = container.decoded_slots() if args.all else container.active_slots()
    if not shown:
        print("No active slot found.")
        return
    for slot in shown:
        print(slot_line(slot))


if __name__ == "__main__":
    main()
