#!/usr/bin/env python3
"""
save_layout.py — fixed byte layout of the .sl2 save container.

Two container shapes are known. Both pack ten character slots, a metadata
section holding one fixed-length header record per slot, and a table of
one-byte "active" flags. The offsets below were found by hand (hex dumps plus
the name scanner in name_scanner.py); none of them is read from the file.

    Variant.A  Elden Ring   (~29 MB)
    Variant.B  Nightreign   (~19 MB, offsets still tentative)

Usage:
    python save_layout.py                 # print both tables
    python save_layout.py --variant B     # one table + overlap check
"""
from __future__ import annotations
import argparse
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Tuple

# ------------------ constantes ------------------
SLOT_COUNT = 10
VARIANT_SIZE_THRESHOLD = 20_000_000   # below -> Nightreign sized container

SLOT_PAD = 0x10          # gap added per slot index in the payload region
NAME_LENGTH = 0x22       # 17 UTF-16LE code units
LEVEL_OFFSET = 0x22      # u8, inside a header record
PLAYED_OFFSET = 0x26     # u32 LE seconds played, inside a header record
PLAYED_LENGTH = 4


class Variant(Enum):
    A = "Elden Ring"
    B = "Nightreign"


@dataclass(frozen=True)
class LayoutConstants:
    slot_start: int
    slot_length: int
    headers_section_start: int
    headers_section_length: int
    header_start: int
    header_length: int
    active_flag_table_start: int


LAYOUTS: Dict[Variant, LayoutConstants] = {
    Variant.A: LayoutConstants(
        slot_start=0x310,
        slot_length=0x280000,
        headers_section_start=0x19003B0,
        headers_section_length=0x60000,
        header_start=0x1901D0E,
        header_length=0x24C,
        active_flag_table_start=0x1901D04,
    ),
    Variant.B: LayoutConstants(
        slot_start=0x310,
        slot_length=0x1A0000,
        headers_section_start=0x10003B0,
        headers_section_length=0x40000,
        header_start=0x1001D0E,
        header_length=0x24C,
        active_flag_table_start=0x1001D04,
    ),
}


def detect_variant(total_length: int) -> Variant:
    """Size heuristic, no signature check. Never fails."""
    if total_length < VARIANT_SIZE_THRESHOLD:
        return Variant.B
    return Variant.A


def constants_for(variant: Variant) -> LayoutConstants:
    return LAYOUTS[variant]


# ------------------ ranges ------------------
@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int   # exclusive

    def __len__(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "ByteRange") -> bool:
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"[0x{self.start:x}, 0x{self.end:x})"


@dataclass(frozen=True)
class SlotRanges:
    index: int
    active: ByteRange
    header: ByteRange
    payload: ByteRange

    def as_tuple(self) -> Tuple[ByteRange, ByteRange, ByteRange]:
        return self.active, self.header, self.payload


def payload_offset(constants: LayoutConstants, index: int) -> int:
    # Pad and stride kept as two separate terms.
    return constants.slot_start + index * SLOT_PAD + index * constants.slot_length


def header_offset(constants: LayoutConstants, index: int) -> int:
    return constants.header_start + index * constants.header_length


def slot_ranges(constants: LayoutConstants, index: int) -> SlotRanges:
    """Byte ranges of one slot. No bounds check against any buffer."""
    act = constants.active_flag_table_start + index
    hdr = header_offset(constants, index)
    pay = payload_offset(constants, index)
    return SlotRanges(
        index=index,
        active=ByteRange(act, act + 1),
        header=ByteRange(hdr, hdr + constants.header_length),
        payload=ByteRange(pay, pay + constants.slot_length),
    )


def layout_overlaps(constants: LayoutConstants, slot_count: int = SLOT_COUNT,
                    cross_kind: bool = True) -> List[Tuple[str, str]]:
    """List colliding range pairs between distinct slots.

    With cross_kind=False only ranges of the same kind are compared
    (payload vs payload, header vs header, flag vs flag).
    """
    kinds = ("active", "header", "payload")
    labelled = []
    for i in range(slot_count):
        r = slot_ranges(constants, i)
        for kind, rng in zip(kinds, r.as_tuple()):
            labelled.append((i, kind, rng))
    out: List[Tuple[str, str]] = []
    for a in range(len(labelled)):
        ia, ka, ra = labelled[a]
        for b in range(a + 1, len(labelled)):
            ib, kb, rb = labelled[b]
            if ia == ib:
                continue
            if not cross_kind and ka != kb:
                continue
            if ra.overlaps(rb):
                out.append((f"slot {ia} {ka} {ra}", f"slot {ib} {kb} {rb}"))
    return out


def container_extent(constants: LayoutConstants, slot_count: int = SLOT_COUNT) -> int:
    """Smallest buffer length that holds every range of every slot."""
    return max(r.end for i in range(slot_count) for r in slot_ranges(constants, i).as_tuple())


# ------------------ helpers ------------------
def parse_offset(text: str) -> int:
    """Hex (0x...) or decimal."""
    s = str(text).strip()
    return int(s, 16) if s.lower().startswith("0x") else int(s)


def parse_variant(text: str) -> Variant:
    key = text.strip().upper()
    aliases = {"A": Variant.A, "ER": Variant.A, "B": Variant.B, "NR": Variant.B}
    if key not in aliases:
        raise ValueError(f"unknown variant: {text!r} (expected A/ER or B/NR)")
    return aliases[key]


def format_layout(variant: Variant, constants: LayoutConstants) -> str:
    lines = [f"{variant.name} ({variant.value})"]
    for name, value in asdict(constants).items():
        lines.append(f"  {name:<24} 0x{value:x}")
    return "\n".join(lines)


# ------------------ CLI ------------------
def main(argv=None) -> None:
    ap = argparse.ArgumentParser(description="Print the known .sl2 layout tables")
    ap.add_argument("--variant", help="A/ER or B/NR (default: both)")
    ap.add_argument("--same-kind", action="store_true",
                    help="Only report collisions between ranges of the same kind")
    args = ap.parse_args(argv)

    variants = [parse_variant(args.variant)] if args.variant else list(Variant)
    for v in variants:
        c = constants_for(v)
        print(format_layout(v, c))
        print(f"  {'extent':<24} 0x{container_extent(c):x}")
        hits = layout_overlaps(c, cross_kind=not args.same_kind)
        if hits:
            print(f"  overlaps: {len(hits)}")
            for a, b in hits[:10]:
                print(f"    - {a}  <->  {b}")
        else:
            print("  overlaps: none")


if __name__ == "__main__":
    main()
