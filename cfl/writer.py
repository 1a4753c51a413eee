from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Sequence

from .codec import Codec
from .constants import COMPRESSION_LZMA, HEADER_SIZE, MAGIC_CFL3, MAX_U32
from .errors import InvalidInput
from .framing import deflate_block
from .header import pack_header
from .records import ArchiveEntry, FileItem, pack_block, pack_entry
from .workers import map_ordered


def _validate(items: Sequence[FileItem]) -> None:
    for i, item in enumerate(items):
        if not item.name:
            raise InvalidInput(f"Item {i} has an empty name; each item needs a name and data")
        if item.data is None or len(item.data) == 0:
            raise InvalidInput(f"Item {item.name!r} has no data; each item needs a name and data")
        if len(item.data) > MAX_U32:
            raise InvalidInput(f"Item {item.name!r} exceeds 4 GiB")


def assign_offsets(block_sizes: Sequence[int]) -> List[int]:
    """
    Folds stored block sizes into absolute offsets.

    Returns one offset per block plus a final element, the position right
    after the last block, which is where the index block starts.
    """
    offsets = [HEADER_SIZE]
    for size in block_sizes:
        offsets.append(offsets[-1] + 4 + size)
    if offsets[-1] > MAX_U32:
        raise InvalidInput("Archive exceeds the 4 GiB addressable by u32 offsets")
    return offsets


def build_index(entries: Sequence[ArchiveEntry]) -> bytes:
    return b"".join(pack_entry(e) for e in entries)


def encode(items: Optional[Sequence[FileItem]], *, codec: Optional[Codec] = None, jobs: int = 1) -> Optional[bytes]:
    """
    Packs ``items`` into a CFL3 archive.

    Returns None when there is nothing to pack. The layout is:
    header, one length-prefixed stored block per item, then the compression
    type, length and stored block of the compressed index.
    """
    if not items:
        return None
    items = list(items)
    _validate(items)
    codec = codec or Codec(COMPRESSION_LZMA)

    blocks = map_ordered(lambda it: deflate_block(bytes(it.data), codec), items, jobs)
    offsets = assign_offsets([len(b) for b in blocks])
    index_offset = offsets[-1]

    entries = []
    for item, offset in zip(items, offsets):
        entries.append(
            ArchiveEntry(
                name=item.name,
                offset=offset,
                compression_type=COMPRESSION_LZMA,
                uncompressed_size=len(item.data),
            )
        )
    index = build_index(entries)
    index_block = deflate_block(index, codec)

    out = bytearray(pack_header(index_offset, len(index), MAGIC_CFL3))
    for block in blocks:
        out += pack_block(block)
    # index_offset points here
    out += COMPRESSION_LZMA.to_bytes(4, "little")
    out += pack_block(index_block)
    return bytes(out)


def collect_directory(path: str) -> List[FileItem]:
    """Read the regular files directly inside ``path`` (no recursion), sorted by name."""
    items: List[FileItem] = []
    for fn in sorted(os.listdir(path)):
        fs_path = os.path.join(path, fn)
        if not os.path.isfile(fs_path):
            continue
        items.append(FileItem(name=fn, data=Path(fs_path).read_bytes()))
    return items


def encode_directory(path: str, **kwargs) -> Optional[bytes]:
    return encode(collect_directory(path), **kwargs)


def write_archive(out_path: str, items: Optional[Sequence[FileItem]], **kwargs) -> Optional[int]:
    """Encode ``items`` and write the archive to ``out_path``.

    Returns the number of bytes written, or None (and no file) when there
    was nothing to pack.
    """
    blob = encode(items, **kwargs)
    if blob is None:
        return None
    with open(out_path, "wb") as f:
        f.write(blob)
    return len(blob)
