from __future__ import annotations

"""
Frame adapter between stored CFL blocks and standard .lzma streams.

Stored block (inside the archive, size kept in the index):
- props[5] || payload

Standard .lzma stream (what liblzma reads and writes):
- props[5] || uncompressed_size u64 (LE) || payload

The size field is written as two u32 halves: the low word is
``size mod 2**32`` and the high word carries ``size`` minus that low word.
CFL sizes are u32 so the high word is always zero in practice.
"""

import struct
from typing import Optional

from .codec import Codec
from .constants import COMPRESSION_LZMA, LZMA_HEADER_SIZE, LZMA_PROPS_SIZE
from .errors import CorruptBlock, UnsupportedCodec


_SIZE_HALVES = struct.Struct("<II")


def wrap(stream: bytes) -> bytes:
    """Drop the 8-byte size field from a standard stream to get a stored block."""
    if len(stream) < LZMA_HEADER_SIZE:
        raise CorruptBlock("LZMA stream shorter than its header")
    return stream[:LZMA_PROPS_SIZE] + stream[LZMA_HEADER_SIZE:]


def unwrap(block: bytes, uncompressed_size: int) -> bytes:
    """Splice the externally known size back into a stored block."""
    if len(block) < LZMA_PROPS_SIZE:
        raise CorruptBlock("Stored block shorter than LZMA properties")
    low = uncompressed_size % (1 << 32)
    high = (uncompressed_size - low) >> 32
    return block[:LZMA_PROPS_SIZE] + _SIZE_HALVES.pack(low, high) + block[LZMA_PROPS_SIZE:]


def deflate_block(data: bytes, codec: Optional[Codec] = None) -> bytes:
    codec = codec or Codec(COMPRESSION_LZMA)
    return wrap(codec.compress(data))


def inflate_block(compression_type: int, uncompressed_size: int, block: bytes, codec: Optional[Codec] = None) -> bytes:
    # Reject foreign codecs before looking at the block at all
    if compression_type != COMPRESSION_LZMA:
        raise UnsupportedCodec(f"unsupported compression type: {compression_type}")
    codec = codec or Codec(COMPRESSION_LZMA)
    return codec.decompress(unwrap(block, uncompressed_size), uncompressed_size)
