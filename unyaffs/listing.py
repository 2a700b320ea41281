"""
listing.py  –  `ls -l` style line for one object header

    drwxr-xr-x        0 2011-08-25 14:02 system
    -rw-r--r--     1337 2011-08-25 14:02 system/build.prop
    lrwxrwxrwx        0 2011-08-25 14:02 system/bin/sh -> mksh
    hrwxrwxrwx        0 2011-08-25 14:02 system/bin/ls -> /system/bin/toolbox
    crw-rw-rw-    1,   3 2011-08-25 14:02 dev/null
"""

from __future__ import annotations

import os
import stat
import sys
import time
from typing import Optional, TextIO

from .header import ObjectHeader, ObjectType
from .hostfs import STD_PERMS
from .objects import ObjectTable

_TYPE_CHARS = {
    ObjectType.FILE: "-",
    ObjectType.DIRECTORY: "d",
    ObjectType.SYMLINK: "l",
    ObjectType.HARDLINK: "h",
}

_SPECIAL_CHARS = {
    stat.S_IFBLK: "b",
    stat.S_IFCHR: "c",
    stat.S_IFIFO: "p",
    stat.S_IFSOCK: "s",
}


def write_line(line: str, out: Optional[TextIO] = None) -> None:
    """Print `line`, writing names back as the raw bytes they came from."""
    out = out if out is not None else sys.stdout
    buffer = getattr(out, "buffer", None)
    if buffer is None:
        out.write(line + "\n")
        return
    out.flush()
    buffer.write(os.fsencode(line) + b"\n")
    buffer.flush()


def format_entry(path: str, header: ObjectHeader, table: ObjectTable) -> str:
    mode = header.mode
    mtime = header.mtime
    size = "0"
    target = None

    if header.type == ObjectType.SPECIAL:
        kind = _SPECIAL_CHARS.get(stat.S_IFMT(mode), "?")
        if kind in ("b", "c"):
            size = f"{os.major(header.rdev)},{os.minor(header.rdev):4d}"
    else:
        kind = _TYPE_CHARS.get(header.type, "?")

    if header.type == ObjectType.FILE:
        size = str(header.file_size)
    elif header.type == ObjectType.HARDLINK:
        # a hard link has no metadata of its own
        eq = table.lookup(header.equivalent_id)
        mtime = eq.mtime if eq is not None else 0
        mode = STD_PERMS
        target = f"/{eq.path}" if eq is not None else "!!! Invalid !!!"
    elif header.type == ObjectType.SYMLINK:
        target = header.alias

    # filemode() also renders setuid/setgid/sticky the way ls does
    perms = stat.filemode(mode)[1:]
    tm = time.localtime(mtime)
    line = (f"{kind}{perms} {size:>8} {tm.tm_year:4d}-{tm.tm_mon:02d}-{tm.tm_mday:02d} "
            f"{tm.tm_hour:02d}:{tm.tm_min:02d} {path}")
    if target is not None:
        line += f" -> {target}"
    return line
