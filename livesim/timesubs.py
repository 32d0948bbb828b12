"""Generated subtitles showing wall-clock time, as stpp cues or wvtt samples."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

SUBS_STPP_PREFIX = "timestpp"
SUBS_WVTT_PREFIX = "timewvtt"
SUBS_TIME_INIT = "init.mp4"
SUBS_TIME_TIMESCALE = 1000

VTTE_BOX = b"\x00\x00\x00\x08vtte"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class CueInterval:
    """Media times of a cue in milliseconds and the UTC second it shows."""

    start_ms: int
    end_ms: int
    utc_s: int


@dataclass
class WvttSample:
    """A WebVTT-in-MP4 sample: a vttc cue box or an empty vtte box."""

    decode_time: int
    dur: int
    data: bytes


def time_subs_segment_parts(prefix: str, segment_part: str) -> tuple[str, str] | None:
    """Split ``<prefix>-<lang>/<segment>`` into (lang, segment), or None if it does not match."""
    rep, sep, seg = segment_part.partition("/")
    if not sep:
        return None
    pfx, sep, lang = rep.partition("-")
    if not sep or pfx != prefix:
        return None
    return lang, seg


def is_time_subs_init_segment(prefix: str, segment_part: str) -> str | None:
    """Return the language if ``segment_part`` names a time-subtitle init segment."""
    parts = time_subs_segment_parts(prefix, segment_part)
    if parts is None:
        return None
    lang, seg = parts
    return lang if seg == SUBS_TIME_INIT else None


def _utc_string(utc_ms: int) -> str:
    t = _EPOCH + timedelta(milliseconds=utc_ms)
    return t.strftime("%Y-%m-%dT%H:%M:%SZ")


def make_stpp_message(lang: str, utc_ms: int, seg_nr: int) -> str:
    """Return the text of an stpp time cue."""
    return f"{_utc_string(utc_ms)}<br/>{lang} # {seg_nr}"


def ms_to_ttml_time(ms: int) -> str:
    """Format milliseconds as a TTML clock time HH:MM:SS.mmm."""
    hours, ms = divmod(ms, 3_600_000)
    minutes, ms = divmod(ms, 60_000)
    seconds, ms = divmod(ms, 1_000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{ms:03d}"


def calc_cue_intervals(seg_start: int, seg_dur: int, utc_start: int, cue_dur: int) -> list[CueInterval]:
    """Return the cue intervals within a segment, all times in milliseconds."""
    cue_full_s = math.ceil(cue_dur * 0.001)
    cue_full_ms = cue_full_s * 1000
    if cue_full_ms <= 0:
        raise ValueError(f"cue duration must be positive, got {cue_dur}")
    diff = seg_start - utc_start
    utc_end_ms = utc_start + seg_dur
    intervals: list[CueInterval] = []
    last = (utc_start + seg_dur) // cue_full_ms
    for utc_s in range(utc_start // cue_full_ms, last + 1, cue_full_s):
        cue_start_ms = utc_s * 1000
        if cue_start_ms == utc_end_ms:
            break
        start = max(cue_start_ms, utc_start)
        end = min(cue_start_ms + cue_dur, utc_end_ms)
        intervals.append(CueInterval(start_ms=start + diff, end_ms=end + diff, utc_s=utc_s))
    return intervals


def rep_to_subs_time(rep_time: int, timescale: int) -> int:
    """Convert a time in ``timescale`` units to subtitle milliseconds, rounding half up."""
    return (2 * rep_time * SUBS_TIME_TIMESCALE + timescale) // (2 * timescale)


def _box(box_type: bytes, payload: bytes) -> bytes:
    return (8 + len(payload)).to_bytes(4, "big") + box_type + payload


def make_wvtt_cue_payload(lang: str, region: int, utc_ms: int, seg_nr: int) -> bytes:
    """Return an encoded vttc box showing the UTC time, language and segment number."""
    cue_text = f"{_utc_string(utc_ms)}\n{lang} # {seg_nr}"
    children = b""
    if region == 1:
        children += _box(b"sttg", b"line:2")
    children += _box(b"payl", cue_text.encode("utf-8"))
    return _box(b"vttc", children)


def create_wvtt_samples(
    nr: int,
    base_media_decode_time: int,
    dur: int,
    lang: str,
    utc_time_ms: int,
    time_subs_dur_ms: int,
    region: int,
) -> list[WvttSample]:
    """Return the samples of a wvtt time-subtitle segment, gaps filled with vtte boxes."""
    samples: list[WvttSample] = []
    curr_end = base_media_decode_time
    for ci in calc_cue_intervals(base_media_decode_time, dur, utc_time_ms, time_subs_dur_ms):
        payload = make_wvtt_cue_payload(lang, region, ci.utc_s * 1000, nr)
        if ci.start_ms > curr_end:
            samples.append(WvttSample(curr_end, ci.start_ms - curr_end, VTTE_BOX))
        samples.append(WvttSample(ci.start_ms, ci.end_ms - ci.start_ms, payload))
        curr_end = ci.end_ms
    seg_end = base_media_decode_time + dur
    if curr_end < seg_end:
        samples.append(WvttSample(curr_end, seg_end - curr_end, VTTE_BOX))
    return samples