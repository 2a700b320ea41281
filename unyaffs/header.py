"""
header.py  –  decode the object header stored in the data area of chunk 0

Layout of the on-flash record (little-endian, 512 bytes used):

    off  size  field
      0     4  type                      (enum, see ObjectType)
      4     4  parent object id          (signed)
      8     2  name checksum             (no longer used)
     10   256  name                      (NUL terminated)
    266     2  alignment
    268     4  mode
    272     4  uid
    276     4  gid
    280     4  atime
    284     4  mtime
    288     4  ctime
    292     4  file size, low word       (files only, signed)
    296     4  equivalent object id      (hard links only, signed)
    300   160  alias                     (symlinks only, NUL terminated)
    460     4  rdev                      (special files only)
    464    32  WinCE times / inband shadowing (ignored)
    496     4  file size, high word      (0xFFFFFFFF on 32 bit images)
    500    12  reserved, shadows, is_shrink (ignored)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

HEADER_FMT = "<Ii2x256s2xIIIIIIii160sI32xI12x"
HEADER_SIZE = struct.calcsize(HEADER_FMT)   # 512

_HIGH_UNUSED = 0xFFFFFFFF

# Helper to read a little-endian 32-bit integer from `buf` at offset `o`
le32 = lambda b, o: struct.unpack_from("<I", b, o)[0]
sle32 = lambda b, o: struct.unpack_from("<i", b, o)[0]


class ObjectType(IntEnum):
    UNKNOWN = 0
    FILE = 1
    SYMLINK = 2
    DIRECTORY = 3
    HARDLINK = 4
    SPECIAL = 5


@dataclass(frozen=True)
class ObjectHeader:
    # raw int when the value is not a known ObjectType
    type: Union[ObjectType, int]
    parent_id: int
    name: str
    mode: int
    uid: int
    gid: int
    atime: int
    mtime: int
    ctime: int
    file_size: int
    equivalent_id: int
    alias: str
    rdev: int


def object_type(value: int) -> Union[ObjectType, int]:
    try:
        return ObjectType(value)
    except ValueError:
        return value


def c_string(raw: bytes) -> str:
    """NUL terminated byte field -> str; undecodable bytes survive as surrogates."""
    return raw.split(b"\0", 1)[0].decode("utf-8", "surrogateescape")


def file_size(low: int, high: int) -> int:
    """Combine the two size words; a high word of 0xFFFFFFFF means a 32 bit size."""
    if high != _HIGH_UNUSED:
        return (high << 32) | (low & 0xFFFFFFFF)
    return max(low, 0)


def peek_header(buf, offset: int = 0):
    """Return (type, parent id) without decoding the whole record."""
    return le32(buf, offset), sle32(buf, offset + 4)


def decode_header(buf, offset: int = 0) -> ObjectHeader:
    (type_, parent_id, name, mode, uid, gid, atime, mtime, ctime,
     size_low, equivalent_id, alias, rdev, size_high) = struct.unpack_from(HEADER_FMT, buf, offset)
    return ObjectHeader(
        type=object_type(type_),
        parent_id=parent_id,
        name=c_string(name),
        mode=mode,
        uid=uid,
        gid=gid,
        atime=atime,
        mtime=mtime,
        ctime=ctime,
        file_size=file_size(size_low, size_high),
        equivalent_id=equivalent_id,
        alias=c_string(alias),
        rdev=rdev,
    )
