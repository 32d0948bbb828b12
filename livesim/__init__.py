"""Building blocks for simulating live MPEG-DASH streams: MPD patches, chunk parsing, SCTE-35, time subtitles, DRM configuration and logging."""

__version__ = "1.6.0"