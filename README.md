# livesim

Pure-Python building blocks for simulating live MPEG-DASH streams from
on-demand content. The package uses only the standard library.

## What is inside

| Module | Purpose |
| --- | --- |
| `livesim.patch` | Compares two MPDs and builds an MPD Patch document (`mpd_diff`, `serialize_patch`, `compare_attributes`, `calc_addr`) |
| `livesim.myers` | Myers' diff over lists of XML elements (`myers_diff`, `equal_leafs`, `same_elements`, `Op`, `OpType`) |
| `livesim.chunkparser` | Splits a stream of fragmented MP4 into chunks, each ending with an `mdat` box (`MP4ChunkParser`, `ChunkData`) |
| `livesim.scte35` | SCTE-35 splice-insert payloads carried in `emsg` boxes (`create_emsg_ahead`, `create_splice_insert_payload`, `EmsgBox`) |
| `livesim.timesubs` | Wall-clock subtitle cues: stpp cue texts and times, and encoded wvtt samples |
| `livesim.cpix` | Parses CPIX key documents (`parse_cpix`, `CPIXData`) |
| `livesim.drmconfig` | Reads a JSON DRM configuration that refers to CPIX files (`read_drm_config`, `to_uuid_str`) |
| `livesim.cmaf` | Maps CMAF file extensions to content types and MIME types |
| `livesim.mpddata` | Keeps the list of MPDs and their origin URIs beside an asset (`write_mpd_data`, `read_mpd_data`) |
| `livesim.logsetup` | Logging set-up, a global log level and a WSGI access-log middleware |
| `livesim.loglevel_http` | WSGI handlers to read and change the log level |
| `livesim.version` | Version string (`get_version`, `print_version`, `check_version`) |

## Installation

Install the package from a checkout with your usual Python installer; the
`test` extra pulls in pytest.

## Examples

### MPD patches

```python
from pathlib import Path

from livesim.patch import PatchTooLateError, mpd_diff, serialize_patch

old = Path("manifest_1.mpd").read_bytes()
new = Path("manifest_2.mpd").read_bytes()

try:
    patch, expiration = mpd_diff(old, new)
except PatchTooLateError:
    print("the new MPD was published after the old patch location expired")
else:
    print("valid until", expiration)
    print(serialize_patch(patch))
```

`mpd_diff` returns the root element of the patch and a timezone-aware
expiration time: the old `publishTime` plus the `ttl` of the old
`PatchLocation` plus ten seconds. Both MPDs need the same non-empty `id`,
distinct `publishTime` values and a `PatchLocation` with a `ttl` in the old
one. Identical publish times raise `PatchSamePublishTimeError`, a new MPD
published after the expiration raises `PatchTooLateError`, and other
problems raise `PatchError` (a `ValueError`). `serialize_patch` writes the
document with an XML declaration, indented by two spaces.

### Splitting chunked MP4

```python
from livesim.chunkparser import MP4ChunkParser

chunks = []
with open("segment.m4s", "rb") as f:
    parser = MP4ChunkParser(f, chunks.append, bytearray(1024))
    parser.parse()

print(len(chunks), "chunks")
for chunk in chunks:
    print(chunk.start, chunk.is_init_segment, len(chunk.data))
```

The callback gets a `ChunkData` for every complete `mdat`-terminated chunk,
and one more for any data left when the stream ends. A stream holding a
`moov` box is flagged as an init segment. The working buffer grows as
needed; pass `parser.buffer` to the next parser to reuse it.

### SCTE-35 ad markers

```python
from livesim.scte35 import create_emsg_ahead

emsg = create_emsg_ahead(180_000, 360_000, 90_000, 1)
if emsg is not None:
    print(emsg.presentation_time)   # 900000
    box_bytes = emsg.encode()
```

`create_emsg_ahead` returns an `EmsgBox` (version 1, scheme
`urn:scte:scte35:2013:bin`) when the segment covers the time seven seconds
before a splice point, and `None` otherwise. With 1 ad per minute the splice
is 10 s after the full minute and lasts 20 s; with 2 the splices are at 10 s
and 40 s; with 3 at 10 s, 36 s and 46 s, each lasting 10 s. Any other count
raises `ValueError`. The message data is a splice_info_section with a
splice_insert command and its CRC-32.

### Time subtitles

```python
from livesim.timesubs import (
    calc_cue_intervals,
    create_wvtt_samples,
    make_stpp_message,
    ms_to_ttml_time,
)

ms_to_ttml_time(36_605_230)            # '10:10:05.230'
calc_cue_intervals(0, 2000, 0, 900)    # cues 0-900 ms (UTC s 0) and 1000-1900 ms (UTC s 1)
make_stpp_message("en", 0, 0)          # '1970-01-01T00:00:00Z<br/>en # 0'

samples = create_wvtt_samples(1800, 3_600_000, 2000, "en", 3_600_000, 600, 1)
for s in samples:
    print(s.decode_time, s.dur, s.data[4:8])   # vttc cue boxes, vtte boxes in the gaps
```

`time_subs_segment_parts` and `is_time_subs_init_segment` recognise paths
such as `timestpp-en/0.m4s` and `timewvtt-sv/init.mp4`.

### DRM configuration

```python
from livesim.drmconfig import read_drm_config, to_uuid_str

config = read_drm_config("drm_config.json")
package = config.get_config("my-package")
key = package.cpix_data.get_content_key("video")

to_uuid_str(bytes(range(16)))  # '00010203-0405-0607-0809-0a0b0c0d0e0f'
```

CPIX file paths in the configuration are resolved relative to the
configuration file unless they are absolute. `get_content_key` returns the
only key when there is one, and otherwise the key whose usage rule names the
track type; it raises `LookupError` when there is none.

### CMAF extensions

```python
from livesim.cmaf import cmaf_extension_from_content_type, content_type_from_cmaf_extension

content_type_from_cmaf_extension(".cmfv")   # 'video'
cmaf_extension_from_content_type("audio")   # '.cmfa'
```

Unknown extensions or content types raise `ValueError`.

### MPD list files

```python
from livesim.mpddata import read_mpd_data, write_mpd_data

write_mpd_data("vod/asset", "Manifest.mpd", "https://example.com/asset/Manifest.mpd")
read_mpd_data("vod", "asset/Manifest.mpd").orig_uri
```

Entries are appended to `mpdlist.json` in the asset directory. When the
file is missing, unreadable or lacks the MPD, `read_mpd_data` returns an
entry holding only the name.

### Logging and the log-level handlers

```python
from wsgiref.simple_server import make_server

from livesim.logsetup import AccessLogMiddleware, init_logging, logger
from livesim.loglevel_http import log_level_app

init_logging("info", "json")   # formats: text, json, pretty, discard
app = AccessLogMiddleware(log_level_app, logger)
make_server("", 8080, app).serve_forever()
```

`GET /loglevel` answers with the current level (`DEBUG`, `INFO`, `WARN` or
`ERROR`). `POST /loglevel` with a multipart form field `level` changes it
and answers `"INFO" → "DEBUG"`; a bad form or an unknown level gives
`400 Bad Request`. The middleware logs every request with its status,
latency and byte counts, and turns an exception from the wrapped
application into a `500` response. A request id stored in the WSGI environ
under `livesim.request_id` is included in the log fields.

## What this package does not do

It is a set of library functions, not a running simulator. There is no
command-line program and no streaming server that serves live MPDs or
segments from on-demand assets. It does not build MP4 init or media
segments: subtitle support stops at cue timing, cue texts and encoded wvtt
sample payloads, and no TTML document is produced. Content keys are parsed
from CPIX but nothing is encrypted.