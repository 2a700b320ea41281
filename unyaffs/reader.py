"""
reader.py  –  pull (data, spare) chunk pairs off the image stream

Bytes already consumed by the layout detector's read-ahead are handed back
first, then reading continues from the stream itself.
"""

from __future__ import annotations

from typing import BinaryIO, Iterator, NamedTuple, Optional

from .errors import BrokenImage
from .layout import Layout, read_full


class Chunk(NamedTuple):
    data: bytes
    spare: bytes


class ChunkReader:
    def __init__(self, stream: BinaryIO, layout: Layout, prefix: bytes = b""):
        self.stream = stream
        self.layout = layout
        self._prefix = memoryview(bytes(prefix))
        self._prefix_idx = 0
        self.chunk_no = 0

    def _take_prefix(self, size: int) -> bytes:
        if self._prefix_idx >= len(self._prefix):
            return b""
        part = self._prefix[self._prefix_idx:self._prefix_idx + size].tobytes()
        self._prefix_idx += len(part)
        return part

    def read_chunk(self) -> Optional[Chunk]:
        """Next chunk, or None on a clean end of input.

        A partial chunk at the end of the input means the image was cut short.
        """
        size = self.layout.size
        raw = self._take_prefix(size)
        if len(raw) < size:
            raw += read_full(self.stream, size - len(raw))

        if not raw:
            return None
        self.chunk_no += 1
        if len(raw) != size:
            raise BrokenImage("Broken image file")

        chunk_size = self.layout.chunk_size
        return Chunk(raw[:chunk_size], raw[chunk_size:])

    def __iter__(self) -> Iterator[Chunk]:
        while True:
            chunk = self.read_chunk()
            if chunk is None:
                return
            yield chunk
