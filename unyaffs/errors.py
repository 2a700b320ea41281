"""
errors.py  –  exceptions raised while decoding or extracting an image

Everything derives from UnyaffsError so the command line front end can turn
any fatal condition into a single diagnostic line and a non-zero exit.
"""

from __future__ import annotations

import os
from typing import Optional


class UnyaffsError(Exception):
    """Base class for fatal extraction errors."""


# ──────────────────────────────────────────────────────────────────────────────
# Structural errors: the image itself is not what we expect
# ──────────────────────────────────────────────────────────────────────────────

class StructuralError(UnyaffsError):
    pass


class NotAnImage(StructuralError):
    pass


class LayoutError(StructuralError):
    pass


class BrokenImage(StructuralError):
    pass


class DuplicateObjectId(StructuralError):
    pass


class InvalidParent(StructuralError):
    pass


class InvalidType(StructuralError):
    pass


class InvalidName(StructuralError):
    pass


class InvalidEquivalentId(StructuralError):
    pass


class TooManyWarnings(StructuralError):
    pass


# ──────────────────────────────────────────────────────────────────────────────
# Host errors: the image is fine but we could not write it out
# ──────────────────────────────────────────────────────────────────────────────

class HostOperationError(UnyaffsError):
    """A host filesystem operation failed.

    str() gives "message: strerror", the same shape as perror(3), so the
    command line can print it as is.
    """

    def __init__(self, message: str, cause: Optional[OSError] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def errno(self) -> Optional[int]:
        return self.cause.errno if self.cause is not None else None

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        if self.cause.errno:
            return f"{self.message}: {os.strerror(self.cause.errno)}"
        return f"{self.message}: {self.cause}"
