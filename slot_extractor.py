"""
slot_extractor.py — decode one character slot from a raw .sl2 buffer.

Every range is checked against the buffer before it is sliced. A range that
leaves the buffer raises OutOfRangeError and nothing is built for that slot.
A name field that is not valid UTF-16LE does not fail the slot: the name is
left empty and the DecodeFailure is kept on the Slot.
"""
from __future__ import annotations
import logging
import struct
import uuid
from dataclasses import dataclass, field
from typing import Optional

from save_layout import (
    LEVEL_OFFSET,
    NAME_LENGTH,
    PLAYED_LENGTH,
    PLAYED_OFFSET,
    SLOT_COUNT,
    ByteRange,
    LayoutConstants,
    Variant,
    slot_ranges,
)

log = logging.getLogger(__name__)


# ------------------ erreurs ------------------
class DecodeError(ValueError):
    """Base class for slot decoding problems."""


class InvalidIndexError(DecodeError):
    def __init__(self, index: int, slot_count: int = SLOT_COUNT):
        super().__init__(f"slot index {index} outside [0, {slot_count})")
        self.index = index
        self.slot_count = slot_count


class OutOfRangeError(DecodeError):
    def __init__(self, what: str, start: int, end: int, size: int):
        super().__init__(f"{what} range [0x{start:x}, 0x{end:x}) outside buffer of {size} bytes")
        self.what = what
        self.start = start
        self.end = end
        self.size = size


class DecodeFailure(DecodeError):
    def __init__(self, offset: int, reason: str):
        super().__init__(f"name at 0x{offset:x} not decodable: {reason}")
        self.offset = offset
        self.reason = reason


# ------------------ dataclasses ------------------
@dataclass
class Slot:
    index: int
    active: bool
    character_name: str
    character_level: int
    seconds_played: int
    save_data: bytes
    header_data: bytes
    name_error: Optional[DecodeFailure] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def display_name(self) -> str:
        return self.character_name.rstrip("\x00")

    @property
    def played(self) -> str:
        h, rest = divmod(self.seconds_played, 3600)
        m, s = divmod(rest, 60)
        return f"{h}:{m:02d}:{s:02d}"


# ------------------ helpers ------------------
def check_range(what: str, start: int, end: int, size: int) -> ByteRange:
    if start < 0 or end > size or end < start:
        raise OutOfRangeError(what, start, end, size)
    return ByteRange(start, end)


def read_u32_le(data: bytes, off: int) -> int:
    return struct.unpack_from("<I", data, off)[0]


def decode_name(raw: bytes, offset: int) -> str:
    """UTF-16LE, padding kept."""
    try:
        return raw.decode("utf-16le")
    except UnicodeDecodeError as e:
        raise DecodeFailure(offset, str(e)) from e


# ------------------ extraction ------------------
def extract_slot(data: bytes, variant: Variant, constants: LayoutConstants,
                 slot_index: int, slot_count: int = SLOT_COUNT) -> Slot:
    """Build the Slot at `slot_index`.

    Raises InvalidIndexError before any offset arithmetic, and OutOfRangeError
    for the first range (flag, header, payload) that does not fit in `data`.
    """
    if not 0 <= slot_index < slot_count:
        raise InvalidIndexError(slot_index, slot_count)

    size = len(data)
    r = slot_ranges(constants, slot_index)
    act = check_range("active flag", r.active.start, r.active.end, size)
    hdr = check_range("header", r.header.start, r.header.end, size)
    # name, level and playtime must sit inside the record even if header_length is odd
    name_rng = check_range("name", hdr.start, hdr.start + NAME_LENGTH, size)
    lvl = check_range("level", hdr.start + LEVEL_OFFSET, hdr.start + LEVEL_OFFSET + 1, size)
    played = check_range("played", hdr.start + PLAYED_OFFSET,
                         hdr.start + PLAYED_OFFSET + PLAYED_LENGTH, size)
    pay = check_range("payload", r.payload.start, r.payload.end, size)

    active_byte = data[act.start]
    raw_name = bytes(data[name_rng.start:name_rng.end])
    log.debug("slot %d (%s): size=%d active@0x%x=%d", slot_index, variant.value,
              size, act.start, active_byte)
    log.debug("slot %d: raw name %s", slot_index, raw_name.hex("-"))

    name_error: Optional[DecodeFailure] = None
    try:
        name = decode_name(raw_name, name_rng.start)
    except DecodeFailure as e:
        log.debug("slot %d: %s", slot_index, e)
        name, name_error = "", e

    level = data[lvl.start]
    log.debug("slot %d: level@0x%x=%d", slot_index, lvl.start, level)

    return Slot(
        index=slot_index,
        active=active_byte == 1,
        character_name=name,
        character_level=level,
        seconds_played=read_u32_le(data, played.start),
        save_data=bytes(data[pay.start:pay.end]),
        header_data=bytes(data[hdr.start:hdr.end]),
        name_error=name_error,
    )
