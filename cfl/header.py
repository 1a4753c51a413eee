from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import HEADER_SIZE, KNOWN_MAGICS, MAGIC_CFL3, MAGIC_DFL3
from .errors import CorruptArchive, FormatMismatch


_HEADER_STRUCT = struct.Struct("<4sII")
# Fields (little endian):
# magic[4], index_offset u32, index_uncompressed_size u32


@dataclass
class ArchiveHeader:
    magic: bytes
    index_offset: int
    index_size: int

    @property
    def is_dfl(self) -> bool:
        return self.magic == MAGIC_DFL3


def pack_header(index_offset: int, index_size: int, magic: bytes = MAGIC_CFL3) -> bytes:
    return _HEADER_STRUCT.pack(magic, index_offset, index_size)


def read_header(data: bytes) -> ArchiveHeader:
    magic = bytes(data[:4])
    if magic not in KNOWN_MAGICS:
        raise FormatMismatch(f"Archive doesn't start with CFL3 or DFL3 (got {magic!r})")
    if len(data) < HEADER_SIZE:
        raise CorruptArchive("Archive too short for header")
    magic, index_offset, index_size = _HEADER_STRUCT.unpack_from(data, 0)
    return ArchiveHeader(magic=magic, index_offset=index_offset, index_size=index_size)
