"""
layout.py  –  figure out chunk and spare size of a YAFFS2 image

A YAFFS2 image does not record its geometry anywhere.  We read a little more
than two chunks of the largest supported layout and look for the pattern
every image starts with:

    chunk 0   object header of the first object (a child of the root)
    chunk 1   header of the next object, an erased chunk,
              or data chunk #1 of the first object

For each candidate the tags sit right after the data area, so the tags of
chunk 0 are at `chunk_size` and the tags of chunk 1 at
`2 * chunk_size + spare_size`.
"""

from __future__ import annotations

import logging
import select
from typing import BinaryIO, NamedTuple

from .errors import HostOperationError, LayoutError, NotAnImage
from .header import ObjectType, peek_header
from .tags import decode_tags

logger = logging.getLogger(__name__)

ROOT_ID = 1


class Layout(NamedTuple):
    chunk_size: int
    spare_size: int

    @property
    def size(self) -> int:
        return self.chunk_size + self.spare_size


# preference order, also the numbering used by `unyaffs -l N`
LAYOUTS = [
    Layout(2048, 64),
    Layout(4096, 128),
    Layout(8192, 256),
    Layout(16384, 512),
]

MAX_CHUNK_SIZE = max(l.chunk_size for l in LAYOUTS)
MAX_SPARE_SIZE = max(l.spare_size for l in LAYOUTS)
READ_AHEAD_SIZE = 2 * (MAX_CHUNK_SIZE + MAX_SPARE_SIZE)

# the first object in an image can't be an UNKNOWN one
_FIRST_OBJECT_TYPES = {
    ObjectType.FILE,
    ObjectType.SYMLINK,
    ObjectType.DIRECTORY,
    ObjectType.HARDLINK,
    ObjectType.SPECIAL,
}


def _wait_readable(stream: BinaryIO) -> None:
    """Block until a non-blocking `stream` has input again."""
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        # no descriptor to wait on, just ask again
        return
    select.select([fd], [], [])


def read_full(stream: BinaryIO, size: int) -> bytes:
    """Read `size` bytes, retrying short reads; fewer only at end of input.

    A non-blocking stream that has nothing to offer yet returns None or
    raises BlockingIOError; both mean "wait", never end of input.
    """
    parts = []
    remaining = size
    while remaining > 0:
        try:
            part = stream.read(remaining)
        except InterruptedError:
            continue
        except BlockingIOError:
            part = None
        except OSError as exc:
            raise HostOperationError("Read image file", exc) from exc
        if part is None:
            _wait_readable(stream)
            continue
        if not part:
            break
        parts.append(part)
        remaining -= len(part)
    return b"".join(parts)



def read_ahead(stream: BinaryIO) -> bytes:
    return read_full(stream, READ_AHEAD_SIZE)


def _matches(buf: bytes, layout: Layout) -> bool:
    first = decode_tags(buf, layout.chunk_size)
    second = decode_tags(buf, 2 * layout.chunk_size + layout.spare_size)

    if not (first.is_header and first.chunk_id == 0):
        return False
    if second.is_header and second.chunk_id == 0:
        return True
    if second.is_empty:
        return True
    return second.object_id == first.object_id and second.chunk_id == 1


def detect_layout(buf: bytes) -> Layout:
    """Pick the layout matching the read-ahead buffer `buf`.

    Raises NotAnImage when the very first record is not an object header
    parented to the root, before any layout is tried, and LayoutError when
    no candidate fits.
    """
    # missing bytes read as erased flash
    buf = bytes(buf).ljust(READ_AHEAD_SIZE, b"\xff")

    type_, parent_id = peek_header(buf)
    if parent_id != ROOT_ID or type_ not in _FIRST_OBJECT_TYPES:
        raise NotAnImage("Not a yaffs2 image")

    for layout in LAYOUTS:
        if _matches(buf, layout):
            logger.info("Header check OK, chunk size = %d, spare size = %d.",
                        layout.chunk_size, layout.spare_size)
            return layout

    raise LayoutError("Can't determine chunk size")
