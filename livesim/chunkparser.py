"""Split a stream of fragmented MP4 data into chunks ending with an mdat box."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Callable

_HEADER_SIZE = 8
_GROW_MARGIN = 1024


@dataclass(frozen=True)
class ChunkData:
    """A raw fMP4 chunk or full segment; ``start`` is its byte offset in the stream."""

    start: int
    is_init_segment: bool
    data: bytes


class MP4ChunkParser:
    """Parser for fragmented MP4 content read from a stream.

    The callback gets every chunk that ends with a complete mdat box, and
    whatever data remains when the stream ends. A stream containing a moov
    box is marked as an init segment. The working buffer grows as needed and
    can be passed to a new parser via :attr:`buffer` to be reused.
    """

    def __init__(self, reader: BinaryIO, callback: Callable[[ChunkData], None], buffer=None):
        self._reader = reader
        self._callback = callback
        if isinstance(buffer, bytearray):
            self._buf = buffer
        else:
            self._buf = bytearray(buffer or b"")
        self._content_end = 0

    @property
    def buffer(self) -> bytearray:
        """The working buffer, sized for the largest chunk seen so far."""
        return self._buf

    def parse(self) -> None:
        """Read the stream to its end, passing chunks to the callback."""
        next_box_start = 0
        mdat_end = 0
        start = 0
        is_init = False
        while True:
            if not self._read_until(next_box_start + _HEADER_SIZE):
                self._flush(start, is_init)
                return
            header = bytes(self._buf[next_box_start : next_box_start + _HEADER_SIZE])
            size = int.from_bytes(header[:4], "big")
            if size < _HEADER_SIZE:
                raise ValueError(f"invalid box size {size} at offset {start + next_box_start}")
            box_type = header[4:].decode("latin-1")
            next_box_start += size
            if box_type == "moov":
                is_init = True
            elif box_type == "mdat":
                mdat_end = next_box_start
            complete = self._read_until(next_box_start)
            if mdat_end == self._content_end:
                self._callback(ChunkData(start, is_init, bytes(self._buf[:mdat_end])))
                start += mdat_end
                remaining = self._content_end - mdat_end
                self._buf[:remaining] = self._buf[mdat_end : self._content_end]
                self._content_end = remaining
                next_box_start -= mdat_end
                mdat_end = 0
            if not complete:
                self._flush(start, is_init)
                return

    def _flush(self, start: int, is_init: bool) -> None:
        if self._content_end > 0:
            self._callback(ChunkData(start, is_init, bytes(self._buf[: self._content_end])))

    def _read_until(self, end: int) -> bool:
        """Fill the buffer up to ``end`` bytes. Return False if the stream ended first."""
        while self._content_end < end:
            if end > len(self._buf):
                self._buf.extend(bytes(end - len(self._buf) + _GROW_MARGIN))
            data = self._reader.read(end - self._content_end)
            if not data:
                return False
            self._buf[self._content_end : self._content_end + len(data)] = data
            self._content_end += len(data)
        return True