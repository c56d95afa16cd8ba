import uuid

import pytest

from name_scanner import looks_like_name
from save_layout import NAME_LENGTH, SLOT_COUNT, Variant, constants_for, container_extent, slot_ranges
from slot_extractor import (
    DecodeFailure,
    InvalidIndexError,
    OutOfRangeError,
    check_range,
    extract_slot,
)


def test_round_trip_known_fields(tiny_layout, build_save):
    data = build_save(tiny_layout, {
        3: dict(name="Tarnished", level=87, played=123456, active=True, fill=0xAB),
    })
    slot = extract_slot(data, Variant.B, tiny_layout, 3)
    assert slot.index == 3
    assert slot.active is True
    assert slot.character_name == "Tarnished" + "\x00" * (NAME_LENGTH // 2 - len("Tarnished"))
    assert slot.display_name == "Tarnished"
    assert slot.character_level == 87
    assert slot.seconds_played == 123456
    assert slot.save_data == b"\xab" * tiny_layout.slot_length
    assert len(slot.header_data) == tiny_layout.header_length
    assert slot.header_data[:4] == "Ta".encode("utf-16le")
    assert slot.name_error is None
    assert isinstance(slot.id, uuid.UUID)


def test_name_keeps_padding(tiny_layout, build_save):
    data = build_save(tiny_layout, {0: dict(name="Ab")})
    slot = extract_slot(data, Variant.B, tiny_layout, 0)
    assert len(slot.character_name) == NAME_LENGTH // 2
    assert slot.character_name.startswith("Ab\x00")


def test_playtime_is_unsigned(tiny_layout, build_save):
    data = build_save(tiny_layout, {1: dict(name="Max", played=0xFFFFFFFF)})
    assert extract_slot(data, Variant.B, tiny_layout, 1).seconds_played == 0xFFFFFFFF


def test_active_only_when_flag_is_one(tiny_layout, build_save):
    buf = bytearray(build_save(tiny_layout, {0: dict(name="Aa"), 1: dict(name="Bb")}))
    buf[tiny_layout.active_flag_table_start + 1] = 2
    data = bytes(buf)
    assert extract_slot(data, Variant.B, tiny_layout, 0).active is True
    assert extract_slot(data, Variant.B, tiny_layout, 1).active is False


def test_ids_differ_between_instances(tiny_layout, build_save):
    data = build_save(tiny_layout)
    a = extract_slot(data, Variant.B, tiny_layout, 0)
    b = extract_slot(data, Variant.B, tiny_layout, 0)
    assert a.id != b.id


@pytest.mark.parametrize("index", [-1, SLOT_COUNT, 99])
def test_invalid_index(tiny_layout, index):
    # empty buffer: the index check must fire before any range check
    with pytest.raises(InvalidIndexError):
        extract_slot(b"", Variant.B, tiny_layout, index)


def test_truncated_after_first_payload(tiny_layout, build_save):
    size = tiny_layout.slot_start + tiny_layout.slot_length
    full = build_save(tiny_layout, {0: dict(name="First", level=5), 1: dict(name="Second")})
    data = full[:size]
    slot0 = extract_slot(data, Variant.B, tiny_layout, 0)
    assert slot0.display_name == "First"
    assert len(slot0.save_data) == tiny_layout.slot_length
    with pytest.raises(OutOfRangeError) as exc:
        extract_slot(data, Variant.B, tiny_layout, 1)
    assert exc.value.what == "payload"
    assert exc.value.size == size


@pytest.mark.parametrize("variant", list(Variant))
def test_real_layout_payload_boundary(variant):
    c = constants_for(variant)
    size = c.slot_start + c.slot_length
    r0, r1 = slot_ranges(c, 0), slot_ranges(c, 1)
    assert check_range("payload", r0.payload.start, r0.payload.end, size).end == size
    with pytest.raises(OutOfRangeError):
        check_range("payload", r1.payload.start, r1.payload.end, size)


def test_check_range_rejects_negative_start():
    with pytest.raises(OutOfRangeError):
        check_range("header", -2, 4, 10)


def test_undecodable_name_does_not_fail_slot(tiny_layout, build_save):
    buf = bytearray(build_save(tiny_layout, {2: dict(name="", level=9, played=60)}))
    hdr = slot_ranges(tiny_layout, 2).header.start
    # lone high surrogate followed by 'A'
    buf[hdr:hdr + 4] = b"\x00\xd8\x41\x00"
    slot = extract_slot(bytes(buf), Variant.B, tiny_layout, 2)
    assert slot.character_name == ""
    assert isinstance(slot.name_error, DecodeFailure)
    assert slot.name_error.offset == hdr
    assert slot.character_level == 9
    assert slot.seconds_played == 60


def test_all_zero_buffer_slots_inactive_and_empty(tiny_layout, build_save):
    data = build_save(tiny_layout)
    for i in range(SLOT_COUNT):
        slot = extract_slot(data, Variant.B, tiny_layout, i)
        assert slot.active is False
        assert slot.character_name.strip("\x00") == ""
        assert slot.character_level == 0
        assert slot.seconds_played == 0


def test_real_variant_a_round_trip(build_save):
    c = constants_for(Variant.A)
    data = build_save(c, {0: dict(name="Melina", level=150, played=3600 * 90)})
    assert len(data) >= 20_000_000
    slot = extract_slot(data, Variant.A, c, 0)
    assert slot.display_name == "Melina"
    assert slot.character_level == 150
    assert slot.seconds_played == 3600 * 90
    assert slot.played == "90:00:00"
    assert len(slot.save_data) == c.slot_length
    del data


def test_misclassification_is_detectable(build_save):
    a = constants_for(Variant.A)
    b = constants_for(Variant.B)
    data = build_save(a, {i: dict(name=f"Hero{i}", level=10 + i) for i in range(SLOT_COUNT)})
    assert len(data) == container_extent(a)
    for i in range(SLOT_COUNT):
        try:
            wrong = extract_slot(data, Variant.B, b, i)
        except OutOfRangeError:
            continue
        assert not looks_like_name(wrong.character_name)
