from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from .codec import Codec
from .constants import COMPRESSION_LZMA
from .errors import CflError, UnsupportedCodec
from .framing import inflate_block
from .header import ArchiveHeader, read_header
from .records import ArchiveEntry, FileItem, parse_index, read_block_at, read_u32
from .workers import map_ordered


def read_index(data: bytes, *, codec: Optional[Codec] = None) -> Tuple[ArchiveHeader, List[ArchiveEntry]]:
    """
    Parses the header and the trailing index without touching file blocks.

    The index lives at ``header.index_offset``: a compression type, the
    stored block length, then the stored block itself. Once inflated it is
    exactly ``header.index_size`` bytes long.
    """
    header = read_header(data)
    compression_type = read_u32(data, header.index_offset)
    if compression_type != COMPRESSION_LZMA:
        raise UnsupportedCodec(f"Index uses unsupported compression type {compression_type}")
    index_block = read_block_at(data, header.index_offset + 4)
    raw = inflate_block(compression_type, header.index_size, index_block, codec)
    return header, parse_index(raw, is_dfl=header.is_dfl)


def extract_entry(data: bytes, entry: ArchiveEntry, *, codec: Optional[Codec] = None) -> bytes:
    if entry.compression_type != COMPRESSION_LZMA:
        raise UnsupportedCodec(f"{entry.name!r} uses unsupported compression type {entry.compression_type}")
    block = read_block_at(data, entry.offset)
    return inflate_block(entry.compression_type, entry.uncompressed_size, block, codec)


def decode(data: bytes, *, codec: Optional[Codec] = None, jobs: int = 1) -> List[FileItem]:
    """Unpack every file of a CFL3/DFL3 archive, in index order."""
    _header, entries = read_index(data, codec=codec)

    def _one(entry: ArchiveEntry) -> FileItem:
        return FileItem(name=entry.name, data=extract_entry(data, entry, codec=codec))

    return map_ordered(_one, entries, jobs)


def decode_file(path: str, **kwargs) -> List[FileItem]:
    return decode(Path(path).read_bytes(), **kwargs)


class ArchiveReader:
    def __init__(self, path: str, codec: Optional[Codec] = None):
        self.path = path
        self.codec = codec
        self.data: Optional[bytes] = None
        self.header: Optional[ArchiveHeader] = None
        self.entries: List[ArchiveEntry] = []

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.data is not None:
            return
        self.data = Path(self.path).read_bytes()
        try:
            self.header, self.entries = read_index(self.data, codec=self.codec)
        except (CflError, ValueError) as exc:
            # Drop the buffer so a failed open leaves nothing behind
            self.close()
            raise exc

    def close(self):
        self.data = None

    def list(self) -> List[ArchiveEntry]:
        return self.entries

    def extract(self, entry: ArchiveEntry) -> bytes:
        if self.data is None:
            raise RuntimeError("Archive not open")
        return extract_entry(self.data, entry, codec=self.codec)

    def read_all(self, jobs: int = 1) -> List[FileItem]:
        if self.data is None:
            raise RuntimeError("Archive not open")
        return map_ordered(lambda e: FileItem(name=e.name, data=self.extract(e)), self.entries, jobs)
