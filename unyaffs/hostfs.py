"""
hostfs.py  –  the handful of host filesystem operations extraction needs

All paths handed in are the relative paths produced by the object table
("." for the root, "dir/file" below it) and are resolved against `root`.

Creation calls raise OSError and let the caller decide how fatal that is.
Ownership, mode and time changes are best effort: they log and return False.
"""

from __future__ import annotations

import errno
import logging
import os
import stat
from pathlib import Path
from typing import BinaryIO, Union

logger = logging.getLogger(__name__)

STD_PERMS = stat.S_IRWXU | stat.S_IRWXG | stat.S_IRWXO
EXTRA_PERMS = stat.S_ISUID | stat.S_ISGID | stat.S_ISVTX


class HostFS:
    def __init__(self, root: Union[str, os.PathLike] = "."):
        self.root = Path(root)

    def path(self, rel: str) -> Path:
        return self.root if rel == "." else self.root / rel

    def prepare_root(self) -> None:
        """mkdir -p the destination; it has to end up being a directory."""
        self.root.mkdir(mode=STD_PERMS, parents=True, exist_ok=True)
        if not self.root.is_dir():
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(self.root))

    # ── creation ─────────────────────────────────────────────────────────────

    def create_file(self, rel: str, mode: int) -> BinaryIO:
        fd = os.open(self.path(rel), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode & STD_PERMS)
        return os.fdopen(fd, "wb")

    def mkdir(self, rel: str, mode: int) -> None:
        os.mkdir(self.path(rel), mode & STD_PERMS)

    def symlink(self, target: str, rel: str) -> None:
        os.symlink(target, self.path(rel))

    def link(self, target_rel: str, rel: str) -> None:
        os.link(self.path(target_rel), self.path(rel), follow_symlinks=False)

    def mknod(self, rel: str, mode: int, rdev: int) -> None:
        os.mknod(self.path(rel), mode, rdev)

    # ── metadata (best effort) ───────────────────────────────────────────────

    def chown(self, rel: str, uid: int, gid: int) -> bool:
        try:
            os.lchown(self.path(rel), uid, gid)
        except OSError as exc:
            # only root may give files away, so this fails on most runs
            logger.debug("Can't chown %s: %s", rel, exc.strerror)
            return False
        return True

    def chmod(self, rel: str, mode: int) -> bool:
        try:
            os.chmod(self.path(rel), stat.S_IMODE(mode))
        except OSError as exc:
            logger.warning("Warning: Can't chmod %s: %s", rel, exc.strerror)
            return False
        return True

    @staticmethod
    def can_set_link_times() -> bool:
        return os.utime in os.supports_follow_symlinks

    def set_times(self, rel: str, atime: int, mtime: int) -> bool:
        """Set atime/mtime without following a symlink at `rel`."""
        follow = not self.can_set_link_times()
        try:
            os.utime(self.path(rel), (atime, mtime), follow_symlinks=follow)
        except OSError as exc:
            logger.warning("Warning: Can't set times of %s: %s", rel, exc.strerror)
            return False
        return True
