"""Mapping between CMAF file extensions, content types and MIME types."""

from __future__ import annotations

CMAF_VIDEO_EXTENSION = ".cmfv"
CMAF_AUDIO_EXTENSION = ".cmfa"
CMAF_TEXT_EXTENSION = ".cmft"
CMAF_META_EXTENSION = ".cmfm"

_CONTENT_TYPES = {
    CMAF_VIDEO_EXTENSION: "video",
    CMAF_AUDIO_EXTENSION: "audio",
    CMAF_TEXT_EXTENSION: "text",
    CMAF_META_EXTENSION: "metadata",
}

_MIME_TYPES = {
    CMAF_VIDEO_EXTENSION: "video/mp4",
    CMAF_AUDIO_EXTENSION: "audio/mp4)",
    CMAF_TEXT_EXTENSION: "application/mp4",
    CMAF_META_EXTENSION: "application/mp4",
}

_EXTENSIONS = {ctype: ext for ext, ctype in _CONTENT_TYPES.items()}


def content_type_from_cmaf_extension(ext: str) -> str:
    """Return the content type for a CMAF file extension."""
    try:
        return _CONTENT_TYPES[ext]
    except KeyError:
        raise ValueError(f"unknown CMAF file extension {ext}") from None


def mime_type_from_cmaf_extension(ext: str) -> str:
    """Return the MIME type for a CMAF file extension."""
    try:
        return _MIME_TYPES[ext]
    except KeyError:
        raise ValueError(f"unknown CMAF file extension {ext}") from None


def cmaf_extension_from_content_type(content_type: str) -> str:
    """Return the CMAF file extension for a content type."""
    try:
        return _EXTENSIONS[content_type]
    except KeyError:
        raise ValueError(f"unknown CMAF contentType {content_type}") from None