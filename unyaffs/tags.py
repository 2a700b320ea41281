"""
tags.py  –  YAFFS2 packed tags (the spare area of every chunk)

The spare area starts with four little-endian u32 words:

    +0  sequence number   (block allocation sequence)
    +4  object id
    +8  chunk id          (0 = object header, 1.. = data chunk index)
    +12 byte count        (0xFFFF = header, 0xFFFFFFFF = erased chunk)

followed by ECC bytes we never look at.
"""

from __future__ import annotations

import struct
from enum import Enum
from typing import NamedTuple

TAGS_FMT = "<IIII"
TAGS_SIZE = struct.calcsize(TAGS_FMT)

HEADER_BYTE_COUNT = 0xFFFF
EMPTY_BYTE_COUNT = 0xFFFFFFFF


class ChunkKind(Enum):
    HEADER = "header"
    DATA = "data"
    EMPTY = "empty"


class PackedTags(NamedTuple):
    sequence: int
    object_id: int
    chunk_id: int
    byte_count: int

    @property
    def kind(self) -> ChunkKind:
        if self.byte_count == EMPTY_BYTE_COUNT:
            return ChunkKind.EMPTY
        if self.byte_count == HEADER_BYTE_COUNT:
            return ChunkKind.HEADER
        return ChunkKind.DATA

    @property
    def is_header(self) -> bool:
        return self.byte_count == HEADER_BYTE_COUNT

    @property
    def is_empty(self) -> bool:
        return self.byte_count == EMPTY_BYTE_COUNT


def decode_tags(buf, offset: int = 0) -> PackedTags:
    """Decode the packed tags at `offset` of `buf` (a spare area or read-ahead buffer)."""
    return PackedTags(*struct.unpack_from(TAGS_FMT, buf, offset))
