from __future__ import annotations

import lzma
import struct
from typing import Dict, Optional

from .constants import (
    COMPRESSION_LZMA,
    LZMA_DICT_SIZE,
    LZMA_HEADER_SIZE,
    LZMA_LC,
    LZMA_LP,
    LZMA_MATCH_FINDER,
    LZMA_MODE,
    LZMA_NICE_LEN,
    LZMA_PB,
    LZMA_PROPS_SIZE,
)
from .errors import CflError, CorruptArchive, CorruptBlock, UnsupportedCodec


_LZMA_HDR_STRUCT = struct.Struct("<BIQ")


def _default_filter() -> Dict:
    return {
        "id": lzma.FILTER_LZMA1,
        "dict_size": LZMA_DICT_SIZE,
        "lc": LZMA_LC,
        "lp": LZMA_LP,
        "pb": LZMA_PB,
        "nice_len": LZMA_NICE_LEN,
        "mf": LZMA_MATCH_FINDER,
        "mode": LZMA_MODE,
    }


def decode_properties(props: bytes) -> Dict:
    """Turn the 5 LZMA property bytes into a raw LZMA1 filter spec.

    The first byte packs ``(pb * 5 + lp) * 9 + lc``; the next four are the
    little-endian dictionary size.
    """
    if len(props) < LZMA_PROPS_SIZE:
        raise CorruptBlock("LZMA properties too short")
    d = props[0]
    if d >= 9 * 5 * 5:
        raise CorruptArchive(f"invalid LZMA properties byte: {d:#x}")
    lc = d % 9
    d //= 9
    lp = d % 5
    pb = d // 5
    dict_size = struct.unpack_from("<I", props, 1)[0]
    return {"id": lzma.FILTER_LZMA1, "dict_size": dict_size, "lc": lc, "lp": lp, "pb": pb}


class Codec:
    def __init__(self, codec_id: int = COMPRESSION_LZMA, level: Optional[int] = None):
        self.codec_id = codec_id
        self.level = level

    def _filter(self) -> Dict:
        if self.level is None:
            return _default_filter()
        return {"id": lzma.FILTER_LZMA1, "preset": self.level}

    def compress(self, data: bytes) -> bytes:
        """Compress into a standard .lzma stream (properties, u64 size, payload)."""
        if self.codec_id != COMPRESSION_LZMA:
            raise UnsupportedCodec(f"unsupported compression type: {self.codec_id}")
        try:
            return lzma.compress(data, format=lzma.FORMAT_ALONE, filters=[self._filter()])
        except lzma.LZMAError as e:
            raise CflError(f"LZMA compression failed: {e}") from e

    def decompress(self, stream: bytes, expected_size: int) -> bytes:
        """Decode a standard .lzma stream whose uncompressed size is known.

        The payload is decoded raw and bounded to ``expected_size`` output
        bytes, so streams with or without an end-of-payload marker decode.
        """
        if self.codec_id != COMPRESSION_LZMA:
            raise UnsupportedCodec(f"unsupported compression type: {self.codec_id}")
        if len(stream) < LZMA_HEADER_SIZE:
            raise CorruptBlock("LZMA stream shorter than its header")
        _props, _dict_size, declared = _LZMA_HDR_STRUCT.unpack_from(stream, 0)
        if declared != expected_size:
            raise CorruptArchive(f"LZMA header size {declared} does not match expected {expected_size}")
        if expected_size == 0:
            return b""
        lzma_filter = decode_properties(stream[:LZMA_PROPS_SIZE])
        try:
            d = lzma.LZMADecompressor(format=lzma.FORMAT_RAW, filters=[lzma_filter])
            raw = d.decompress(stream[LZMA_HEADER_SIZE:], max_length=expected_size)
        except (lzma.LZMAError, ValueError) as e:
            raise CorruptArchive(f"LZMA decompression failed: {e}") from e
        if len(raw) != expected_size:
            raise CorruptArchive(f"LZMA data ended after {len(raw)} of {expected_size} bytes")
        return raw
