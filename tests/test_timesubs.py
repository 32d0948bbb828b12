import pytest

from livesim.timesubs import (
    SUBS_STPP_PREFIX,
    SUBS_WVTT_PREFIX,
    VTTE_BOX,
    CueInterval,
    WvttSample,
    calc_cue_intervals,
    create_wvtt_samples,
    is_time_subs_init_segment,
    make_stpp_message,
    make_wvtt_cue_payload,
    ms_to_ttml_time,
    rep_to_subs_time,
    time_subs_segment_parts,
)


def test_stpp_time_message():
    assert make_stpp_message("en", 0, 0) == "1970-01-01T00:00:00Z<br/>en # 0"


@pytest.mark.parametrize("ms,wanted", [(0, "00:00:00.000"), (36605_230, "10:10:05.230")])
def test_ms_to_ttml_time(ms, wanted):
    assert ms_to_ttml_time(ms) == wanted


@pytest.mark.parametrize(
    "start,dur,utc,cue_dur,wanted",
    [
        (0, 2000, 0, 1800, [CueInterval(0, 1800, 0)]),
        (0, 2000, 0, 900, [CueInterval(0, 900, 0), CueInterval(1000, 1900, 1)]),
        (12000, 800, 12100, 900, [CueInterval(12000, 12800, 12)]),
        (12000, 801, 12100, 900, [CueInterval(12000, 12800, 12)]),
        (12000, 799, 12100, 900, [CueInterval(12000, 12799, 12)]),
    ],
)
def test_calc_cue_intervals(start, dur, utc, cue_dur, wanted):
    assert calc_cue_intervals(start, dur, utc, cue_dur) == wanted


def test_calc_cue_intervals_rejects_zero_duration():
    with pytest.raises(ValueError):
        calc_cue_intervals(0, 2000, 0, 0)


def test_segment_parts():
    assert time_subs_segment_parts(SUBS_STPP_PREFIX, "timestpp-en/0.m4s") == ("en", "0.m4s")
    assert time_subs_segment_parts(SUBS_WVTT_PREFIX, "timestpp-en/0.m4s") is None
    assert time_subs_segment_parts(SUBS_STPP_PREFIX, "timestpp-en") is None
    assert time_subs_segment_parts(SUBS_STPP_PREFIX, "timestpp/0.m4s") is None


def test_init_segment_detection():
    assert is_time_subs_init_segment(SUBS_WVTT_PREFIX, "timewvtt-sv/init.mp4") == "sv"
    assert is_time_subs_init_segment(SUBS_WVTT_PREFIX, "timewvtt-sv/3.m4s") is None


def test_rep_to_subs_time():
    assert rep_to_subs_time(180000, 90000) == 2000
    assert rep_to_subs_time(1, 2000) == 1
    assert rep_to_subs_time(0, 90000) == 0


def test_wvtt_cue_payload_bytes():
    payload = make_wvtt_cue_payload("en", 1, 3_600_000, 1800)
    assert payload == (
        b"\x00\x00\x00\x3cvttc"
        b"\x00\x00\x00\x0esttgline:2"
        b"\x00\x00\x00\x26payl1970-01-01T01:00:00Z\nen # 1800"
    )


def test_wvtt_cue_payload_without_region():
    payload = make_wvtt_cue_payload("en", 0, 0, 0)
    assert payload == b"\x00\x00\x00\x2bvttc\x00\x00\x00\x23payl1970-01-01T00:00:00Z\nen # 0"


def test_wvtt_samples():
    samples = create_wvtt_samples(1800, 3_600_000, 2000, "en", 3_600_000, 600, 1)
    assert [(s.decode_time, s.dur) for s in samples] == [
        (3_600_000, 600),
        (3_600_600, 400),
        (3_601_000, 600),
        (3_601_600, 400),
    ]
    assert samples[1] == WvttSample(3_600_600, 400, VTTE_BOX)
    assert samples[3].data == b"\x00\x00\x00\x08vtte"
    assert len(samples[0].data) == 60
    assert samples[0].data.endswith(b"1970-01-01T01:00:00Z\nen # 1800")
    assert samples[2].data.endswith(b"1970-01-01T01:00:01Z\nen # 1800")