import os
import struct
import sys

import pytest

# Modules live at the repository root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from save_layout import LEVEL_OFFSET, NAME_LENGTH, PLAYED_OFFSET, SLOT_COUNT, LayoutConstants, container_extent, slot_ranges


@pytest.fixture
def tiny_layout():
    """Small layout with the same shape as the real ones.

    Flags at 0x00, ten 0x30-byte headers from 0x10, payloads from 0x200.
    """
    return LayoutConstants(
        slot_start=0x200,
        slot_length=0x40,
        headers_section_start=0x10,
        headers_section_length=0x1E0,
        header_start=0x10,
        header_length=0x30,
        active_flag_table_start=0x00,
    )


def write_slot(buf, constants, index, name="", level=0, played=0, active=True, fill=None):
    r = slot_ranges(constants, index)
    buf[r.active.start] = 1 if active else 0
    hdr = r.header.start
    raw = name.encode("utf-16le")[:NAME_LENGTH]
    buf[hdr:hdr + NAME_LENGTH] = raw.ljust(NAME_LENGTH, b"\x00")
    buf[hdr + LEVEL_OFFSET] = level
    struct.pack_into("<I", buf, hdr + PLAYED_OFFSET, played)
    if fill is not None:
        buf[r.payload.start:r.payload.end] = bytes([fill]) * (r.payload.end - r.payload.start)


@pytest.fixture
def build_save():
    """build_save(constants, {index: dict(name=..., level=..., played=..., active=...)}, size=None)"""
    def _build(constants, slots=None, size=None):
        buf = bytearray(size if size is not None else container_extent(constants, SLOT_COUNT))
        for index, fields in (slots or {}).items():
            write_slot(buf, constants, index, **fields)
        return bytes(buf)
    return _build
