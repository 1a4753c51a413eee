"""
CFL — LZMA-compressed file container tooling.

Features:

- Pack an ordered set of named byte blobs into a single ``CFL3`` archive with a
  compressed trailer index and per-file LZMA blocks.
- Extract ``CFL3`` archives and read ``DFL3`` archives (the variant whose index
  carries a per-file content hash; hashes are read, never checked).
- Frame adapter that converts between the container's stored LZMA blocks and
  the standard ``.lzma`` stream layout consumed by liblzma.
- Listing, inspection, packing and unpacking via CLI.

The on-disk layout is described in cfl.header, cfl.records and cfl.framing.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "codec",
    "framing",
    "header",
    "records",
    "writer",
    "reader",
]

# Importable programmatic API is available via cfl.writer.encode/cfl.reader.decode
# and the CLI functions in cfl.cli (cmd_pack/cmd_unpack) which take normal parameters.
