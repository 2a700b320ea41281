"""
extract.py  –  rebuild the file tree stored in a YAFFS2 image
================================================================

The image is consumed strictly front to back:

1. the layout detector peeks at the first two chunks to learn the geometry
   (skipped when the caller forces a layout);
2. every header chunk becomes an entry in the object table and is created on
   the host right away; a file's data chunks follow its header and are
   streamed into the open output file;
3. once the stream is exhausted, directory timestamps are put back, newest
   directory first, because creating anything inside a directory bumps its
   mtime.

Fatal problems raise an UnyaffsError and stop the run; whatever was already
created stays on disk.
"""

from __future__ import annotations

import errno
import logging
from typing import BinaryIO, Optional, TextIO

from .errors import (
    BrokenImage,
    HostOperationError,
    InvalidEquivalentId,
    TooManyWarnings,
)
from .header import ObjectHeader, ObjectType, decode_header
from .hostfs import EXTRA_PERMS, HostFS
from .layout import ROOT_ID, Layout, detect_layout, read_ahead
from .listing import format_entry, write_line
from .objects import ObjectEntry, ObjectTable
from .reader import ChunkReader
from .tags import ChunkKind, decode_tags

logger = logging.getLogger(__name__)

# unrecognized chunks tolerated before giving up on the image
MAX_WARN = 20


class Extractor:
    def __init__(
        self,
        stream: BinaryIO,
        host: Optional[HostFS] = None,
        layout: Optional[Layout] = None,
        list_only: bool = False,
        verbose: bool = False,
        out: Optional[TextIO] = None,
    ):
        self.stream = stream
        self.host = host if host is not None else HostFS(".")
        self.layout = layout
        self.list_only = list_only
        self.verbose = verbose
        self.out = out
        self.table = ObjectTable()
        self.warn_count = 0
        self.reader: Optional[ChunkReader] = None

    # ──────────────────────────────────────────────────────────────────────────
    # Driver
    # ──────────────────────────────────────────────────────────────────────────

    def run(self) -> ObjectTable:
        prefix = b""
        if self.layout is None:
            prefix = read_ahead(self.stream)
            self.layout = detect_layout(prefix)

        self.reader = ChunkReader(self.stream, self.layout, prefix)
        for data, spare in self.reader:
            self.process_chunk(data, spare)

        if not self.list_only:
            self.restore_directory_times()
        return self.table

    def _print(self, line: str) -> None:
        write_line(line, self.out)

    def _warn_stream(self) -> None:
        self.warn_count += 1
        if self.warn_count > MAX_WARN:
            raise TooManyWarnings("Giving up")
        logger.warning("Warning: Invalid header at chunk #%d, skipping...",
                       self.reader.chunk_no)

    # ──────────────────────────────────────────────────────────────────────────
    # Per chunk
    # ──────────────────────────────────────────────────────────────────────────

    def process_chunk(self, data: bytes, spare: bytes) -> None:
        tags = decode_tags(spare)
        kind = tags.kind
        if kind is ChunkKind.EMPTY:
            return
        if kind is not ChunkKind.HEADER:
            self._warn_stream()
            return

        header = decode_header(data)
        entry = self.table.insert(tags.object_id, header)

        if self.verbose:
            self._print(format_entry(entry.path, header, self.table))
        elif self.list_only:
            self._print(entry.path)

        if self.list_only:
            if header.type == ObjectType.FILE:
                self.skip_file_data(entry, header)
            return

        handler = {
            ObjectType.FILE: self.extract_file,
            ObjectType.SYMLINK: self.extract_symlink,
            ObjectType.DIRECTORY: self.extract_directory,
            ObjectType.HARDLINK: self.extract_hardlink,
            ObjectType.SPECIAL: self.extract_special,
        }.get(header.type)
        if handler is not None:
            handler(entry, header)

    def file_data(self, entry: ObjectEntry, header: ObjectHeader):
        """Yield the payload slices of `entry` until `file_size` bytes are read."""
        remaining = header.file_size
        expected_chunk_id = 1
        chunk_size = self.layout.chunk_size
        while remaining > 0:
            chunk = self.reader.read_chunk()
            if chunk is None:
                raise BrokenImage("Broken image file")
            tags = decode_tags(chunk.spare)
            if (tags.kind is not ChunkKind.DATA
                    or tags.object_id != entry.object_id
                    or tags.chunk_id != expected_chunk_id
                    or tags.byte_count > chunk_size):
                raise BrokenImage(
                    f"Broken image file: bad data chunk #{self.reader.chunk_no} for {entry.path}")
            size = min(remaining, tags.byte_count)
            yield chunk.data[:size]
            remaining -= size
            expected_chunk_id += 1

    def skip_file_data(self, entry: ObjectEntry, header: ObjectHeader) -> None:
        for _ in self.file_data(entry, header):
            pass

    # ──────────────────────────────────────────────────────────────────────────
    # Per object type
    # ──────────────────────────────────────────────────────────────────────────

    def extract_file(self, entry: ObjectEntry, header: ObjectHeader) -> None:
        host = self.host
        try:
            out = host.create_file(entry.path, header.mode)
        except OSError as exc:
            raise HostOperationError(f"Can't create file {entry.path}", exc) from exc
        with out:
            for payload in self.file_data(entry, header):
                try:
                    out.write(payload)
                except OSError as exc:
                    raise HostOperationError(f"Can't write to {entry.path}", exc) from exc

        host.chown(entry.path, header.uid, header.gid)
        if header.mode & EXTRA_PERMS:
            host.chmod(entry.path, header.mode)
        host.set_times(entry.path, header.atime, header.mtime)

    def extract_symlink(self, entry: ObjectEntry, header: ObjectHeader) -> None:
        host = self.host
        try:
            host.symlink(header.alias, entry.path)
        except OSError as exc:
            raise HostOperationError(f"Can't create symlink {entry.path}", exc) from exc
        host.chown(entry.path, header.uid, header.gid)
        if host.can_set_link_times():
            host.set_times(entry.path, header.atime, header.mtime)

    def extract_directory(self, entry: ObjectEntry, header: ObjectHeader) -> None:
        host = self.host
        is_root = entry.object_id == ROOT_ID
        if not is_root:
            try:
                host.mkdir(entry.path, header.mode)
            except OSError as exc:
                raise HostOperationError(f"Can't create directory {entry.path}", exc) from exc
        host.chown(entry.path, header.uid, header.gid)
        if is_root or header.mode & EXTRA_PERMS:
            host.chmod(entry.path, header.mode)
        # times are restored by restore_directory_times()

    def extract_hardlink(self, entry: ObjectEntry, header: ObjectHeader) -> None:
        target = self.table.lookup(header.equivalent_id)
        if target is None:
            raise InvalidEquivalentId(
                f"Invalid equivalentObjectId {header.equivalent_id} "
                f"in object {entry.object_id} ({header.name})")
        try:
            self.host.link(target.path, entry.path)
        except OSError as exc:
            raise HostOperationError(f"Can't create hardlink {entry.path}", exc) from exc

    def extract_special(self, entry: ObjectEntry, header: ObjectHeader) -> None:
        host = self.host
        try:
            host.mknod(entry.path, header.mode, header.rdev)
        except OSError as exc:
            # device nodes need privileges we usually don't have
            if exc.errno in (errno.EPERM, errno.EINVAL):
                logger.warning("Warning: Can't create device %s: %s", entry.path, exc.strerror)
                return
            raise HostOperationError(f"Can't create device {entry.path}", exc) from exc
        host.chown(entry.path, header.uid, header.gid)
        host.set_times(entry.path, header.atime, header.mtime)

    # ──────────────────────────────────────────────────────────────────────────
    # Final pass
    # ──────────────────────────────────────────────────────────────────────────

    def restore_directory_times(self) -> None:
        for entry in self.table.directories():
            self.host.set_times(entry.path, entry.atime, entry.mtime)


def extract(stream: BinaryIO, dest=".", layout: Optional[Layout] = None,
            list_only: bool = False, verbose: bool = False,
            out: Optional[TextIO] = None) -> ObjectTable:
    """Extract the image read from `stream` below `dest`."""
    host = HostFS(dest)
    if not list_only:
        try:
            host.prepare_root()
        except OSError as exc:
            raise HostOperationError(f"Can't mkdir {dest}", exc) from exc
    extractor = Extractor(stream, host, layout=layout, list_only=list_only,
                          verbose=verbose, out=out)
    return extractor.run()
