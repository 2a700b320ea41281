"""
objects.py  –  object id -> path table built while walking the image

Every object header names its parent by id, so as long as parents come
before their children (which is how images are written) one forward pass is
enough to turn ids into paths.

Directories are additionally threaded onto a chain through `prev_dir_id`,
newest first.  Walking it after extraction visits every directory after all
of its children, which is the order in which their timestamps must be
restored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Union

from .errors import DuplicateObjectId, InvalidName, InvalidParent, InvalidType
from .header import ObjectHeader, ObjectType
from .layout import ROOT_ID

logger = logging.getLogger(__name__)


@dataclass
class ObjectEntry:
    object_id: int
    type: Union[ObjectType, int]
    path: str
    atime: int = 0
    mtime: int = 0
    prev_dir_id: Optional[int] = None     # directories only


class ObjectTable:
    def __init__(self):
        self._objects: Dict[int, ObjectEntry] = {}
        self.last_dir_id: Optional[int] = None
        self.insert_root()

    def insert_root(self) -> ObjectEntry:
        root = ObjectEntry(ROOT_ID, ObjectType.DIRECTORY, ".")
        self._objects[ROOT_ID] = root
        self.last_dir_id = None
        return root

    def lookup(self, object_id: int) -> Optional[ObjectEntry]:
        return self._objects.get(object_id)

    def __contains__(self, object_id: int) -> bool:
        return object_id in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    def _update_root(self, header: ObjectHeader) -> ObjectEntry:
        if header.type != ObjectType.DIRECTORY:
            raise InvalidType("Root object must be directory")
        root = self._objects[ROOT_ID]
        if self.last_dir_id is None:
            self.last_dir_id = ROOT_ID
        root.atime = header.atime
        root.mtime = header.mtime
        return root

    def insert(self, object_id: int, header: ObjectHeader) -> ObjectEntry:
        """Add the object described by `header` and return its entry.

        The root directory already exists; a header for it only updates the
        recorded times.
        """
        if object_id == ROOT_ID:
            return self._update_root(header)

        if not isinstance(header.type, ObjectType):
            raise InvalidType(
                f"Illegal type {header.type} in object {object_id} ({header.name})")
        name = header.name
        if not name or "/" in name or name in (".", ".."):
            raise InvalidName(f"Illegal file name {name} in object {object_id}")
        if object_id in self._objects:
            raise DuplicateObjectId(f"Duplicate objectId {object_id}")

        parent = self._objects.get(header.parent_id)
        if parent is None:
            raise InvalidParent(
                f"Invalid parentObjectId {header.parent_id} in object {object_id} ({name})")
        if parent.type != ObjectType.DIRECTORY:
            raise InvalidParent(
                f"File {name} can't be created in {parent.path}: Not a directory")

        path = name if parent.path == "." else f"{parent.path}/{name}"
        entry = ObjectEntry(object_id, header.type, path, header.atime, header.mtime)
        if entry.type == ObjectType.DIRECTORY:
            entry.prev_dir_id = self.last_dir_id
            self.last_dir_id = object_id
        self._objects[object_id] = entry
        logger.debug("object %d -> %s", object_id, path)
        return entry

    def directories(self) -> Iterator[ObjectEntry]:
        """Directories, most recently inserted first."""
        dir_id = self.last_dir_id
        while dir_id is not None:
            entry = self._objects.get(dir_id)
            if entry is None:
                return
            yield entry
            dir_id = entry.prev_dir_id
