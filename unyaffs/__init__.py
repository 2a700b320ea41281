"""unyaffs – extract files from a YAFFS2 flash file system image."""

__version__ = "0.9.0"

from .errors import (  # noqa: E402
    BrokenImage,
    DuplicateObjectId,
    HostOperationError,
    InvalidEquivalentId,
    InvalidName,
    InvalidParent,
    InvalidType,
    LayoutError,
    NotAnImage,
    StructuralError,
    TooManyWarnings,
    UnyaffsError,
)
from .extract import Extractor, extract  # noqa: E402
from .header import ObjectHeader, ObjectType, decode_header  # noqa: E402
from .hostfs import HostFS  # noqa: E402
from .layout import LAYOUTS, Layout, detect_layout  # noqa: E402
from .objects import ObjectEntry, ObjectTable  # noqa: E402
from .reader import Chunk, ChunkReader  # noqa: E402
from .tags import ChunkKind, PackedTags, decode_tags  # noqa: E402
