import lzma


# Magic
MAGIC_CFL3 = b"CFL3"  # plain index records
MAGIC_DFL3 = b"DFL3"  # index records followed by a content hash
KNOWN_MAGICS = (MAGIC_CFL3, MAGIC_DFL3)

# Fixed header: magic[4], index_offset u32, index_uncompressed_size u32
HEADER_SIZE = 12

# Compression types stored in the index and in front of the index block
COMPRESSION_LZMA = 4

# LZMA framing
LZMA_PROPS_SIZE = 5  # lc/lp/pb byte + dictionary size u32
LZMA_SIZE_FIELD = 8  # uncompressed size u64 in the standard .lzma header
LZMA_HEADER_SIZE = LZMA_PROPS_SIZE + LZMA_SIZE_FIELD

# Encoder settings used by the reference CFL writer
LZMA_DICT_SIZE = 1 << 16
LZMA_LC = 3
LZMA_LP = 0
LZMA_PB = 2
LZMA_NICE_LEN = 64
LZMA_MATCH_FINDER = lzma.MF_BT4
LZMA_MODE = lzma.MODE_NORMAL

# Limits of the on-disk integer fields
MAX_U16 = 0xFFFF
MAX_U32 = 0xFFFFFFFF
