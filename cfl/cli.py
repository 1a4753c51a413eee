from __future__ import annotations

import os
import sys
import time
import argparse
from pathlib import Path
from typing import List, Optional

from cfl.codec import Codec
from cfl.constants import COMPRESSION_LZMA
from cfl.errors import CflError, CorruptArchive, FormatMismatch, UnsupportedCodec
from cfl.pathutil import safe_member_name
from cfl.reader import ArchiveReader
from cfl.records import FileItem
from cfl.writer import collect_directory, write_archive


def _gather_items(inputs: List[str], quiet: bool) -> List[FileItem]:
    """Collect FileItems from files and (non-recursive) directories.

    Empty files cannot be stored in a CFL archive and are skipped with a warning.
    """
    items: List[FileItem] = []
    seen = set()
    for p in inputs:
        if os.path.isdir(p):
            found = []
            for it in collect_directory(p):
                if not it.data:
                    print(f"Warning: skipping empty file {os.path.join(p, it.name)}", file=sys.stderr)
                    continue
                found.append(it)
        elif os.path.isfile(p):
            data = Path(p).read_bytes()
            if not data:
                print(f"Warning: skipping empty file {p}", file=sys.stderr)
                continue
            found = [FileItem(name=os.path.basename(p), data=data)]
        else:
            raise FileNotFoundError(f"No such file or directory: {p}")
        for it in found:
            if it.name in seen:
                print(f"Warning: duplicate member name {it.name}", file=sys.stderr)
            seen.add(it.name)
            if not quiet:
                print(f"   packing: {it.name} ({len(it.data)} bytes)")
            items.append(it)
    return items


def cmd_pack(output: str, inputs: List[str], *, level: Optional[int] = None, jobs: int = 1, quiet: bool = False) -> bool:
    """Pack (create) a new archive from filesystem paths.

    Args:
        output: Path to the output .cfl file to write.
        inputs: Files and/or directories; directories contribute their direct
            regular files only.
        level: LZMA preset (0-9); None keeps the reference encoder settings.
        jobs: Worker threads used for compression.
        quiet: Limit output to the summary line.

    Returns:
        True when an archive was written, False when there was nothing to pack.
    """
    items = _gather_items(inputs, quiet)
    t0 = time.time()
    written = write_archive(output, items, codec=Codec(COMPRESSION_LZMA, level=level), jobs=jobs)
    if written is None:
        print("Nothing to pack; no archive written", file=sys.stderr)
        return False
    total = sum(len(it.data) for it in items)
    print(f"Packed {len(items)} file(s), {total} -> {written} bytes in {time.time() - t0:.2f}s: {output}")
    return True


def _next_nonconflicting_path(path: str) -> str:
    if not os.path.lexists(path):
        return path
    base_dir = os.path.dirname(path)
    root, ext = os.path.splitext(os.path.basename(path))
    i = 1
    while True:
        candidate = os.path.join(base_dir, f"{root} ({i}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        i += 1


def cmd_unpack(archive: str, *, outdir: str = ".", exists: str = "rename", jobs: int = 1, quiet: bool = False) -> bool:
    """Unpack (extract) every file of an archive into a directory.

    Args:
        archive: Path to a .cfl file.
        outdir: Destination directory (created if missing).
        exists: What to do when a destination file exists: overwrite, skip,
            rename (append ' (n)' before the extension) or fail.
        jobs: Worker threads used for decompression.
        quiet: Limit output to the summary line.
    """
    with ArchiveReader(archive) as r:
        items = r.read_all(jobs=jobs)
    os.makedirs(outdir or ".", exist_ok=True)
    extracted = 0
    skipped = 0
    renamed = 0
    for it in items:
        dst = os.path.join(outdir or ".", safe_member_name(it.name))
        os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        if os.path.lexists(dst):
            if exists == "skip":
                if not quiet:
                    print(f"   skipping: {it.name}")
                skipped += 1
                continue
            if exists == "fail":
                raise FileExistsError(f"Destination exists: {dst}")
            if exists == "rename":
                new_dst = _next_nonconflicting_path(dst)
                if not quiet:
                    print(f" extracting: {it.name} (renamed to {os.path.basename(new_dst)})")
                dst = new_dst
                renamed += 1
            elif not quiet:
                print(f" extracting: {it.name} (overwriting)")
        elif not quiet:
            print(f" extracting: {it.name}")
        with open(dst, "wb") as wf:
            wf.write(it.data)
        extracted += 1
    print(f"Extracted {extracted} file(s) (skipped={skipped} renamed={renamed}) to {outdir}")
    return True


def cmd_list(archive: str) -> bool:
    """List archive entries.

    Args:
        archive: Path to a .cfl file.
    """
    with ArchiveReader(archive) as r:
        dfl = r.header is not None and r.header.is_dfl
        for e in r.list():
            if dfl:
                print(f"{e.uncompressed_size}\t{e.offset}\t{e.content_hash}\t{e.name}")
            else:
                print(f"{e.uncompressed_size}\t{e.offset}\t{e.name}")
    return True


def cmd_info(archive: str) -> bool:
    """Show archive information.

    Args:
        archive: Path to a .cfl file.
    """
    with ArchiveReader(archive) as r:
        entries = r.list()
        print(f"Archive: {archive}")
        if r.header:
            print(f"  Magic: {r.header.magic.decode('ascii')}")
            print(f"  Index offset: {r.header.index_offset}")
            print(f"  Index size: {r.header.index_size}")
        print(f"  Entries: {len(entries)}")
        print(f"  Uncompressed bytes: {sum(e.uncompressed_size for e in entries)}")
        print(f"  Archive bytes: {len(r.data or b'')}")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="cfl",
        description="CFL archive tool (LZMA-compressed file container)",
        epilog="Archives are written as CFL3; CFL3 and DFL3 archives can be read.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_pack = sub.add_parser("pack", help="Pack files into an archive")
    ap_pack.add_argument("output", help="Output .cfl path")
    ap_pack.add_argument("inputs", nargs="+", help="Input files/directories (directories are not recursed)")
    ap_pack.add_argument("--level", type=int, choices=range(0, 10), metavar="0-9", help="LZMA preset instead of the reference encoder settings")
    ap_pack.add_argument("--jobs", "-j", type=int, default=1, help="Parallel compression threads (default 1)")
    ap_pack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_unpack = sub.add_parser("unpack", help="Unpack files")
    ap_unpack.add_argument("archive", help="Archive path")
    ap_unpack.add_argument("--outdir", default=".", help="Output directory")
    ap_unpack.add_argument("--jobs", "-j", type=int, default=1, help="Parallel decompression threads (default 1)")
    ap_unpack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap_unpack.add_argument(
        "--exists",
        choices=["overwrite", "skip", "rename", "fail"],
        default="rename",
        help=(
            "What to do if a destination file exists: overwrite (truncate/replace), "
            "skip (do not extract that entry), rename (append ' (n)' before extension), or fail (abort). "
            "Default: rename"
        ),
    )

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "pack":
            ok = cmd_pack(args.output, args.inputs, level=args.level, jobs=args.jobs, quiet=args.quiet)
            sys.exit(0 if ok else 1)
        elif args.cmd == "unpack":
            cmd_unpack(args.archive, outdir=args.outdir, exists=args.exists, jobs=args.jobs, quiet=args.quiet)
        elif args.cmd == "list":
            cmd_list(args.archive)
        elif args.cmd == "info":
            cmd_info(args.archive)
        else:
            raise RuntimeError("Unknown command")
    except FormatMismatch as e:
        print(f"Error: not a CFL archive: {e}", file=sys.stderr)
        sys.exit(2)
    except (CorruptArchive, UnsupportedCodec) as e:
        print(f"Error: cannot read archive: {e}", file=sys.stderr)
        sys.exit(2)
    except (CflError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
