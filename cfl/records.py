from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .constants import COMPRESSION_LZMA, MAX_U16
from .errors import CorruptArchive, InvalidInput


# Index record (fixed 14 bytes, then the name)
# struct: <I I I H
#  - uncompressed_size u32
#  - offset u32 (absolute position of the block's length prefix)
#  - compression_type u32
#  - name_len u16
# DFL3 records continue with hash_len i32 || hash[hash_len]
_ENTRY_STRUCT = struct.Struct("<IIIH")
_HASH_LEN_STRUCT = struct.Struct("<i")
_U32 = struct.Struct("<I")


@dataclass
class FileItem:
    name: str
    data: bytes


@dataclass
class ArchiveEntry:
    name: str
    offset: int
    compression_type: int = COMPRESSION_LZMA
    uncompressed_size: int = 0
    content_hash: Optional[str] = None


def read_exact(data: bytes, pos: int, n: int) -> bytes:
    if pos < 0 or n < 0 or pos + n > len(data):
        raise CorruptArchive(f"Read of {n} bytes at {pos} runs past end of buffer ({len(data)} bytes)")
    return bytes(data[pos : pos + n])


def read_u32(data: bytes, pos: int) -> int:
    return _U32.unpack(read_exact(data, pos, _U32.size))[0]


def read_block_at(data: bytes, offset: int) -> bytes:
    """Return the length-prefixed block stored at ``offset``."""
    size = read_u32(data, offset)
    return read_exact(data, offset + _U32.size, size)


def pack_block(block: bytes) -> bytes:
    return _U32.pack(len(block)) + block


def pack_entry(entry: ArchiveEntry) -> bytes:
    try:
        name = entry.name.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidInput(f"File name {entry.name!r} cannot be encoded as UTF-8") from e
    if len(name) > MAX_U16:
        raise InvalidInput(f"File name too long ({len(name)} bytes): {entry.name[:40]}...")
    return _ENTRY_STRUCT.pack(entry.uncompressed_size, entry.offset, entry.compression_type, len(name)) + name


def _decode_text(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CorruptArchive(f"Index {what} is not valid UTF-8") from e


def parse_entry(data: bytes, pos: int, is_dfl: bool) -> Tuple[ArchiveEntry, int]:
    """Parse one index record at ``pos``; returns the entry and the next position."""
    usize, offset, ctype, name_len = _ENTRY_STRUCT.unpack(read_exact(data, pos, _ENTRY_STRUCT.size))
    pos += _ENTRY_STRUCT.size
    name = _decode_text(read_exact(data, pos, name_len), "name")
    pos += name_len
    content_hash = None
    # DFL3 hashes are carried through as-is; nothing recomputes them.
    if is_dfl:
        hash_len = _HASH_LEN_STRUCT.unpack(read_exact(data, pos, _HASH_LEN_STRUCT.size))[0]
        pos += _HASH_LEN_STRUCT.size
        if hash_len < 0:
            raise CorruptArchive(f"Negative hash length {hash_len} for {name!r}")
        content_hash = _decode_text(read_exact(data, pos, hash_len), "hash")
        pos += hash_len
    entry = ArchiveEntry(
        name=name,
        offset=offset,
        compression_type=ctype,
        uncompressed_size=usize,
        content_hash=content_hash,
    )
    return entry, pos


def parse_index(data: bytes, is_dfl: bool = False) -> List[ArchiveEntry]:
    entries: List[ArchiveEntry] = []
    pos = 0
    while pos < len(data):
        entry, pos = parse_entry(data, pos, is_dfl)
        entries.append(entry)
    return entries
