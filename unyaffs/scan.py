#!/usr/bin/env python3
"""
scan.py  –  dump the packed tags of every chunk in a YAFFS2 image

Useful when an image refuses to extract: it shows where headers, data chunks
and erased chunks actually sit.

    [chunk     1] HEADER obj=  257 chk=   0 len=0x0000ffff seq=4096  DIRECTORY system
    [chunk     2] HEADER obj=  258 chk=   0 len=0x0000ffff seq=4096  FILE build.prop
    [chunk     3] DATA   obj=  258 chk=   1 len=0x00000539 seq=4096
"""

from __future__ import annotations

import sys
from typing import BinaryIO, Optional, TextIO

from .errors import UnyaffsError
from .header import ObjectType, decode_header
from .layout import Layout, detect_layout, read_ahead
from .listing import write_line
from .reader import ChunkReader
from .tags import ChunkKind, decode_tags

# tag names
KIND_NAMES = {ChunkKind.HEADER: "HEADER", ChunkKind.DATA: "DATA", ChunkKind.EMPTY: "EMPTY"}


def scan(stream: BinaryIO, layout: Optional[Layout] = None, out: Optional[TextIO] = None) -> int:
    out = out if out is not None else sys.stdout
    prefix = b""
    if layout is None:
        prefix = read_ahead(stream)
        layout = detect_layout(prefix)
    print(f"chunk size = {layout.chunk_size}, spare size = {layout.spare_size}", file=out)

    reader = ChunkReader(stream, layout, prefix)
    for data, spare in reader:
        t = decode_tags(spare)
        line = (f"[chunk {reader.chunk_no:5d}] {KIND_NAMES[t.kind]:<6} obj={t.object_id:5d}"
                f" chk={t.chunk_id:4d} len=0x{t.byte_count:08x} seq={t.sequence}")
        if t.kind is ChunkKind.HEADER:
            oh = decode_header(data)
            type_name = oh.type.name if isinstance(oh.type, ObjectType) else f"type={oh.type}"
            line += f"  {type_name} {oh.name}"
        write_line(line, out)
    return reader.chunk_no


if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit("usage: python3 -m unyaffs.scan image.yaffs2")
    try:
        with open(sys.argv[1], "rb") as f:
            scan(f)
    except (OSError, UnyaffsError) as exc:
        sys.exit(str(exc))
