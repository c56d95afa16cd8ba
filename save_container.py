"""
save_container.py — a whole .sl2 file decoded into its ten slots.

The variant is decided once from the buffer size (or forced by the caller) and
every slot is decoded with that variant's constants. A slot that fails to decode
is recorded in `failures` and left as None in `slots`; the others are still
decoded.
"""
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple, Union

from name_scanner import looks_like_name
from save_layout import SLOT_COUNT, LayoutConstants, Variant, constants_for, detect_variant
from slot_extractor import DecodeError, Slot, extract_slot

log = logging.getLogger(__name__)

SlotOutcome = Union[Slot, DecodeError]


class SaveContainer:
    def __init__(self, raw_bytes: bytes, variant: Variant, constants: LayoutConstants,
                 slots: List[Optional[Slot]], failures: Dict[int, DecodeError]):
        self._raw = raw_bytes
        self._variant = variant
        self.constants = constants
        self.slots = slots
        self.failures = failures

    @property
    def raw_bytes(self) -> bytes:
        return self._raw

    @property
    def variant(self) -> Variant:
        return self._variant

    @classmethod
    def load(cls, data: bytes, constants: Optional[LayoutConstants] = None,
             variant: Optional[Variant] = None, workers: Optional[int] = None,
             slot_count: int = SLOT_COUNT) -> "SaveContainer":
        raw = bytes(data)
        if variant is None:
            variant = detect_variant(len(raw))
        if constants is None:
            constants = constants_for(variant)

        def one(i: int) -> Tuple[int, SlotOutcome]:
            try:
                return i, extract_slot(raw, variant, constants, i, slot_count)
            except DecodeError as e:
                return i, e

        if workers and workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(one, range(slot_count)))
        else:
            outcomes = [one(i) for i in range(slot_count)]

        slots: List[Optional[Slot]] = [None] * slot_count
        failures: Dict[int, DecodeError] = {}
        for i, out in sorted(outcomes, key=lambda o: o[0]):
            if isinstance(out, DecodeError):
                log.warning("slot %d not decoded: %s", i, out)
                failures[i] = out
            else:
                slots[i] = out

        log.info("loaded %d bytes as %s: %d/%d slots decoded, %d active",
                 len(raw), variant.value, slot_count - len(failures), slot_count,
                 sum(1 for s in slots if s is not None and s.active))
        return cls(raw, variant, constants, slots, failures)

    # ------------------ accès ------------------
    def __len__(self) -> int:
        return len(self.slots)

    def __getitem__(self, index: int) -> Optional[Slot]:
        return self.slots[index]

    @property
    def failed_indices(self) -> List[int]:
        return sorted(self.failures)

    def decoded_slots(self) -> List[Slot]:
        return [s for s in self.slots if s is not None]

    def active_slots(self) -> List[Slot]:
        return [s for s in self.decoded_slots() if s.active]

    # ------------------ contrôles ------------------
    def suspicious_slots(self) -> List[int]:
        """Active slots whose name would be rejected by the name scanner."""
        return [s.index for s in self.active_slots() if not looks_like_name(s.character_name)]

    def looks_misdetected(self) -> bool:
        """True when nothing in the container reads like a real character.

        Either every slot failed to decode, or there are active slots and none
        of them carries a plausible name. A save with no active slot is not
        flagged.
        """
        if not self.decoded_slots():
            return True
        active = self.active_slots()
        return bool(active) and len(self.suspicious_slots()) == len(active)
