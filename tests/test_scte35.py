import pytest

from livesim.scte35 import (
    SCHEME_ID_URI,
    EmsgBox,
    SpliceInsertParams,
    create_emsg_ahead,
    create_splice_insert_payload,
    is_valid_scte35_interval,
)

PTS_MASK = (1 << 33) - 1


def crc_is_valid(section: bytes) -> bool:
    crc = 0xFFFFFFFF
    for byte in section:
        crc ^= byte << 24
        for _ in range(8):
            crc = ((crc << 1) ^ 0x04C11DB7) if crc & 0x80000000 else crc << 1
            crc &= 0xFFFFFFFF
    return crc == 0


@pytest.mark.parametrize(
    "seg_start, seg_end, timescale, per_minute, wanted_emsg, wanted_pts",
    [
        (0, 180000, 90000, 1, False, 0),
        (180000, 360000, 90000, 1, True, 900_000),
        (360000, 540000, 90000, 1, False, 0),
        (2000, 4000, 1000, 1, True, 10_000),
    ],
)
def test_scte35_generation(seg_start, seg_end, timescale, per_minute, wanted_emsg, wanted_pts):
    emsg = create_emsg_ahead(seg_start, seg_end, timescale, per_minute)
    assert (emsg is not None) == wanted_emsg
    if emsg is not None:
        assert emsg.timescale == timescale
        assert emsg.presentation_time == wanted_pts
        assert emsg.scheme_id_uri == SCHEME_ID_URI


def test_invalid_per_minute():
    with pytest.raises(ValueError):
        create_emsg_ahead(0, 0, 0, 4)


@pytest.mark.parametrize("value", [0, 4, -1])
def test_invalid_interval(value):
    with pytest.raises(ValueError, match="1, 2, or 3"):
        is_valid_scte35_interval(value)


def test_emsg_payload_fields():
    emsg = create_emsg_ahead(180000, 360000, 90000, 1)
    payload = emsg.message_data
    assert payload[0] == 0xFC
    section_length = int.from_bytes(payload[1:3], "big") & 0xFFF
    assert section_length + 3 == len(payload)
    assert crc_is_valid(payload)
    assert payload[13] == 0x05
    assert int.from_bytes(payload[14:18], "big") == emsg.id == 10
    assert int.from_bytes(payload[20:25], "big") & PTS_MASK == 900_000
    assert int.from_bytes(payload[25:30], "big") & PTS_MASK == 20 * 90000
    assert emsg.event_duration == 20 * 90000


def test_two_per_minute_second_splice():
    emsg = create_emsg_ahead(60 * 1000 + 32000, 60 * 1000 + 34000, 1000, 2)
    assert emsg.presentation_time == 100_000
    assert emsg.event_duration == 10_000


def test_cancelled_event_has_short_command():
    params = SpliceInsertParams(splice_event_id=1, splice_event_cancel_indicator=True)
    payload = create_splice_insert_payload(params)
    assert crc_is_valid(payload)
    assert len(payload) == 14 + 5 + 2 + 4


def test_emsg_encode_v1_layout():
    emsg = create_emsg_ahead(2000, 4000, 1000, 1)
    raw = emsg.encode()
    assert int.from_bytes(raw[0:4], "big") == len(raw)
    assert raw[4:8] == b"emsg"
    assert raw[8] == 1
    assert int.from_bytes(raw[12:16], "big") == 1000
    assert int.from_bytes(raw[16:24], "big") == 10_000
    assert raw.endswith(emsg.message_data)
    assert SCHEME_ID_URI.encode() + b"\x00\x00" in raw


def test_emsg_encode_v0_layout():
    box = EmsgBox(version=0, timescale=90000, scheme_id_uri="urn:x", value="v", message_data=b"ab")
    raw = box.encode()
    assert int.from_bytes(raw[0:4], "big") == len(raw)
    assert raw[12:20] == b"urn:x\x00v\x00"
    assert raw.endswith(b"ab")


def test_emsg_encode_bad_version():
    with pytest.raises(ValueError):
        EmsgBox(version=2).encode()