"""SCTE-35 splice inserts carried in emsg boxes, following SCTE-214-1."""

from __future__ import annotations

from dataclasses import dataclass

SCHEME_ID_URI = "urn:scte:scte35:2013:bin"

_PTS_MASK = (1 << 33) - 1
_U32_MASK = 0xFFFFFFFF
_SPLICE_INSERT_COMMAND = 0x05
_TABLE_ID = 0xFC


@dataclass
class SpliceInsertParams:
    """Parameters of a splice_insert command."""

    pts_time: int = 0
    duration: int = 0
    splice_event_id: int = 0
    tier: int = 0
    unique_program_id: int = 0
    avail_num: int = 0
    avails_expected: int = 0
    splice_event_cancel_indicator: bool = False
    out_of_network_indicator: bool = False
    splice_immediate_flag: bool = False
    auto_return: bool = False


@dataclass
class EmsgBox:
    """An ISOBMFF event message box."""

    version: int = 1
    flags: int = 0
    timescale: int = 0
    presentation_time: int = 0
    presentation_time_delta: int = 0
    event_duration: int = 0
    id: int = 0
    scheme_id_uri: str = ""
    value: str = ""
    message_data: bytes = b""

    def encode(self) -> bytes:
        """Return the box serialized with its header."""
        scheme = self.scheme_id_uri.encode() + b"\x00"
        value = self.value.encode() + b"\x00"
        if self.version == 1:
            body = (
                self.timescale.to_bytes(4, "big")
                + self.presentation_time.to_bytes(8, "big")
                + self.event_duration.to_bytes(4, "big")
                + self.id.to_bytes(4, "big")
                + scheme
                + value
            )
        elif self.version == 0:
            body = (
                scheme
                + value
                + self.timescale.to_bytes(4, "big")
                + self.presentation_time_delta.to_bytes(4, "big")
                + self.event_duration.to_bytes(4, "big")
                + self.id.to_bytes(4, "big")
            )
        else:
            raise ValueError(f"unknown emsg version {self.version}")
        full_header = bytes([self.version]) + self.flags.to_bytes(3, "big")
        payload = full_header + body + bytes(self.message_data)
        return (8 + len(payload)).to_bytes(4, "big") + b"emsg" + payload


class _BitWriter:
    def __init__(self) -> None:
        self._value = 0
        self._bits = 0

    def write(self, value: int, nbits: int) -> None:
        self._value = (self._value << nbits) | (value & ((1 << nbits) - 1))
        self._bits += nbits

    def to_bytes(self) -> bytes:
        if self._bits % 8:
            raise ValueError("bit stream not byte aligned")
        return self._value.to_bytes(self._bits // 8, "big")


def _crc32_mpeg2(data: bytes) -> int:
    crc = _U32_MASK
    for byte in data:
        crc ^= byte << 24
        for _ in range(8):
            crc = ((crc << 1) ^ 0x04C11DB7) if crc & 0x80000000 else crc << 1
            crc &= _U32_MASK
    return crc


def is_valid_scte35_interval(ads_per_minute: int) -> None:
    """Raise ValueError unless ``ads_per_minute`` is 1, 2 or 3."""
    if ads_per_minute not in (1, 2, 3):
        raise ValueError("scte35 per minute must be 1, 2, or 3")


def create_emsg_ahead(seg_start: int, seg_end: int, timescale: int, per_minute: int) -> EmsgBox | None:
    """Return an SCTE-35 emsg if the segment covers the time 7s before an ad start.

    Splice inserts per minute:
    1: 10s after the full minute (20s duration)
    2: 10s and 40s after the full minute (10s duration)
    3: 10s, 36s and 46s after the full minute (10s duration)
    """
    is_valid_scte35_interval(per_minute)
    minute_start = seg_start - seg_start % (60 * timescale)
    ad_duration = 10 * timescale
    if per_minute == 1:
        ad_duration = 20 * timescale
        offsets = (10,)
    elif per_minute == 2:
        offsets = (10, 40)
    else:
        offsets = (10, 36, 46)
    splice_time = next(
        (
            sit
            for sit in (minute_start + off * timescale for off in offsets)
            if seg_start < sit - 7 * timescale <= seg_end
        ),
        None,
    )
    if splice_time is None:
        return None
    emsg_id = (splice_time // timescale) & _U32_MASK
    params = SpliceInsertParams(
        pts_time=(splice_time * 90000 // timescale) % (1 << 33),
        duration=ad_duration * 90000 // timescale,
        splice_event_id=emsg_id,
        tier=4095,
        out_of_network_indicator=True,
        auto_return=True,
    )
    return EmsgBox(
        version=1,
        flags=0,
        timescale=timescale & _U32_MASK,
        presentation_time=splice_time,
        event_duration=ad_duration & _U32_MASK,
        id=emsg_id,
        scheme_id_uri=SCHEME_ID_URI,
        value="",
        message_data=create_splice_insert_payload(params),
    )


def create_splice_insert_payload(params: SpliceInsertParams) -> bytes:
    """Create an SCTE-35 splice_info_section with a splice_insert command and CRC."""
    cmd = _BitWriter()
    cmd.write(params.splice_event_id, 32)
    cmd.write(int(params.splice_event_cancel_indicator), 1)
    cmd.write(0x7F, 7)
    if not params.splice_event_cancel_indicator:
        has_duration = params.duration != 0
        cmd.write(int(params.out_of_network_indicator), 1)
        cmd.write(1, 1)  # program_splice_flag
        cmd.write(int(has_duration), 1)
        cmd.write(int(params.splice_immediate_flag), 1)
        cmd.write(0xF, 4)
        if not params.splice_immediate_flag:
            cmd.write(1, 1)  # time_specified_flag
            cmd.write(0x3F, 6)
            cmd.write(params.pts_time & _PTS_MASK, 33)
        if has_duration:
            cmd.write(int(params.auto_return), 1)
            cmd.write(0x3F, 6)
            cmd.write(params.duration & _PTS_MASK, 33)
        cmd.write(params.unique_program_id, 16)
        cmd.write(params.avail_num, 8)
        cmd.write(params.avails_expected, 8)
    command = cmd.to_bytes()

    # Bytes after section_length: 11 header bytes, command, descriptor loop length, CRC.
    section_length = 11 + len(command) + 2 + 4
    sec = _BitWriter()
    sec.write(_TABLE_ID, 8)
    sec.write(0, 1)  # section_syntax_indicator
    sec.write(0, 1)  # private_indicator
    sec.write(0b11, 2)  # sap_type: not specified
    sec.write(section_length, 12)
    sec.write(0, 8)  # protocol_version
    sec.write(0, 1)  # encrypted_packet
    sec.write(0, 6)  # encryption_algorithm
    sec.write(0, 33)  # pts_adjustment
    sec.write(0, 8)  # cw_index
    sec.write(params.tier, 12)
    sec.write(len(command), 12)
    sec.write(_SPLICE_INSERT_COMMAND, 8)
    body = sec.to_bytes() + command + b"\x00\x00"
    return body + _crc32_mpeg2(body).to_bytes(4, "big")