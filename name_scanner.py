#!/usr/bin/env python3
"""
name_scanner.py — heuristic search for character names in a raw .sl2 buffer.

Names are stored as fixed-width UTF-16LE fields (0x22 bytes). A position is a
candidate when it looks like the low byte of an ASCII-range code unit
(byte != 00 followed by 00). The 0x22-byte window at that position is decoded,
trailing NULs are dropped, and the hit is kept only if what remains is at least
two letters/digits/punctuation/whitespace.

This is a diagnostic tool. It is how the header offsets in save_layout.py are
re-derived by hand when a game update moves them; it never changes them.

Usage:
    python scan_names.py saves/ER0000.sl2 --limit 20
    python scan_names.py saves/ER0000.sl2 --start 0x1901000 --end 0x1904000 --rich
"""
from __future__ import annotations
import unicodedata
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from save_layout import NAME_LENGTH

# ------------------ constantes ------------------
MIN_NAME_CHARS = 2
CONTEXT_BEFORE = 16
CONTEXT_AFTER = 48
CONTEXT_AFTER_RICH = 64
LEVEL_HINT_DELTA = NAME_LENGTH + 2   # 0x24 bytes after the name start
ACTIVE_HINT_DELTA = -4


@dataclass
class NameCandidate:
    offset: int
    text: str
    raw: bytes
    context_start: int
    context: bytes
    level_hint_offset: int
    level_hint: Optional[int]
    active_hint_offset: int
    active_hint: Optional[int]


# ------------------ acceptance ------------------
def is_name_char(ch: str) -> bool:
    if ch.isalnum() or ch.isspace():
        return True
    return unicodedata.category(ch).startswith("P")


def looks_like_name(text: str) -> bool:
    """Same test the scanner applies to a decoded window (after NUL strip)."""
    s = text.rstrip("\x00")
    return len(s) >= MIN_NAME_CHARS and all(is_name_char(c) for c in s)


def decode_window(window: bytes) -> Optional[str]:
    try:
        return window.decode("utf-16le").rstrip("\x00")
    except UnicodeDecodeError:
        return None


def _byte_at(data: bytes, off: int) -> Optional[int]:
    return data[off] if 0 <= off < len(data) else None


# ------------------ scan ------------------
def iter_names(data: bytes, start: int = 0, end: Optional[int] = None,
               rich: bool = False) -> Iterator[NameCandidate]:
    """Yield every accepted candidate in data[start:end] (absolute offsets).

    The window may run past `end` but never past the buffer. Hints and the
    context window are read from the whole buffer.
    """
    n = len(data)
    stop = n if end is None else min(end, n)
    after = CONTEXT_AFTER_RICH if rich else CONTEXT_AFTER
    i = max(0, start)
    # last candidate needs i+1 < n-1, same bound as a plain "i < len - 2" loop
    while i < min(stop, n - 2):
        if data[i] != 0 and data[i + 1] == 0 and i + NAME_LENGTH <= n:
            window = bytes(data[i:i + NAME_LENGTH])
            text = decode_window(window)
            if text is not None and looks_like_name(text):
                ctx_start = max(0, i - CONTEXT_BEFORE)
                yield NameCandidate(
                    offset=i,
                    text=text,
                    raw=window,
                    context_start=ctx_start,
                    context=bytes(data[ctx_start:min(n, i + after)]),
                    level_hint_offset=i + LEVEL_HINT_DELTA,
                    level_hint=_byte_at(data, i + LEVEL_HINT_DELTA),
                    active_hint_offset=i + ACTIVE_HINT_DELTA,
                    active_hint=_byte_at(data, i + ACTIVE_HINT_DELTA),
                )
        i += 1


class NameScan:
    """Lazy, restartable view over iter_names(); iterating twice rescans."""

    def __init__(self, data: bytes, start: int = 0, end: Optional[int] = None,
                 rich: bool = False):
        self.data = data
        self.start = start
        self.end = end
        self.rich = rich

    def __iter__(self) -> Iterator[NameCandidate]:
        return iter_names(self.data, self.start, self.end, self.rich)

    def first(self, count: int) -> List[NameCandidate]:
        out: List[NameCandidate] = []
        for c in self:
            if len(out) >= count:
                break
            out.append(c)
        return out


def scan_names(data: bytes, start: int = 0, end: Optional[int] = None,
               rich: bool = False) -> NameScan:
    return NameScan(data, start, end, rich)


# ------------------ recherche exacte ------------------
def utf16le_pattern(name: str, terminated: bool = False) -> bytes:
    """Name as stored in a header record. Optional 00 00 terminator."""
    pat = name.encode("utf-16le")
    return pat + b"\x00\x00" if terminated else pat


def find_all(data: bytes, pat: bytes) -> List[int]:
    offsets = []
    start = 0
    while True:
        pos = data.find(pat, start)
        if pos == -1:
            break
        offsets.append(pos)
        start = pos + 1
    return offsets


def find_name_offsets(data: bytes, name: str, terminated: bool = True) -> List[int]:
    if not name:
        raise ValueError("empty name")
    return find_all(data, utf16le_pattern(name, terminated))


# ------------------ propositions ------------------
def propose_header_starts(candidates: Iterable[NameCandidate], header_length: int,
                          slot_count: int, min_hits: int = 2) -> List[Tuple[int, int]]:
    """Guess header_start values from scanner hits.

    Each hit at offset o could be slot k's name for any k in [0, slot_count),
    which puts the header base at o - k*header_length. Bases backed by several
    hits are returned as (base, hits), best first. Nothing is applied.
    """
    votes: Counter = Counter()
    for c in candidates:
        seen = set()
        for k in range(slot_count):
            base = c.offset - k * header_length
            if base < 0:
                break
            if base not in seen:
                seen.add(base)
                votes[base] += 1
    ranked = [(base, hits) for base, hits in votes.items() if hits >= min_hits]
    ranked.sort(key=lambda bh: (-bh[1], bh[0]))
    return ranked


def hexdump_slice(data: bytes, start: int, length: int = 200, width: int = 16) -> str:
    start = max(0, start)
    end = min(len(data), start + length)
    out_lines = []
    for off in range(start, end, width):
        chunk = data[off:min(end, off + width)]
        hexpart = " ".join(f"{b:02x}" for b in chunk)
        asciip = ''.join(chr(b) if 32 <= b < 127 else '.' for b in chunk)
        out_lines.append(f"0x{off:08x}  {hexpart:<{width*3}}  |{asciip}|")
    return "\n".join(out_lines)


def hex_bytes(b: bytes) -> str:
    """Dash separated, upper case (AA-BB-CC)."""
    return "-".join(f"{x:02X}" for x in b)
