from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict

from cfl.reader import decode_file


def _build_fixture_dir(root: Path) -> Dict[str, bytes]:
    files: Dict[str, bytes] = {}
    content = b"hello world\n" * 20
    (root / "readme.txt").write_bytes(content)
    files["readme.txt"] = content

    bin_data = os.urandom(2048)
    (root / "binary.bin").write_bytes(bin_data)
    files["binary.bin"] = bin_data

    # Not packable: empty files and subdirectories
    (root / "empty.txt").write_bytes(b"")
    (root / "sub").mkdir()
    (root / "sub" / "deep.txt").write_bytes(b"ignored")
    return files


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "cfl.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def test_pack_unpack_roundtrip(self):
        tmp_src = tempfile.TemporaryDirectory()
        tmp_workspace = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_src.cleanup)
        self.addCleanup(tmp_workspace.cleanup)

        src_root = Path(tmp_src.name)
        workspace = Path(tmp_workspace.name)
        files = _build_fixture_dir(src_root)

        archive = workspace / "archive.cfl"
        pack_proc = self.run_cli(["pack", str(archive), str(src_root), "--jobs", "2"])
        self.assertIn("Packed 2 file(s)", pack_proc.stdout)
        self.assertIn("skipping empty file", pack_proc.stderr)

        items = decode_file(str(archive))
        self.assertEqual({it.name: it.data for it in items}, files)

        list_proc = self.run_cli(["list", str(archive)])
        listed = [line.split("\t")[-1] for line in list_proc.stdout.splitlines()]
        self.assertEqual(listed, ["binary.bin", "readme.txt"])

        info_proc = self.run_cli(["info", str(archive)])
        self.assertIn("Magic: CFL3", info_proc.stdout)
        self.assertIn("Entries: 2", info_proc.stdout)

        extract_dir = workspace / "extract"
        self.run_cli(["unpack", str(archive), "--outdir", str(extract_dir)])
        for name, data in files.items():
            self.assertEqual((extract_dir / name).read_bytes(), data)
        self.assertFalse((extract_dir / "empty.txt").exists())
        self.assertFalse((extract_dir / "sub").exists())

    def test_conflict_policies(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            file_path = root / "file.txt"
            file_path.write_text("alpha")
            archive = root / "arc.cfl"
            self.run_cli(["pack", str(archive), str(file_path), "--level", "1"])

            out_skip = root / "ex_skip"
            out_skip.mkdir()
            (out_skip / "file.txt").write_text("beta")
            skip_proc = self.run_cli(["unpack", str(archive), "--outdir", str(out_skip), "--exists", "skip"])
            self.assertIn("skipping: file.txt", skip_proc.stdout)
            self.assertEqual((out_skip / "file.txt").read_text(), "beta")

            out_rename = root / "ex_rename"
            out_rename.mkdir()
            (out_rename / "file.txt").write_text("beta")
            rename_proc = self.run_cli(["unpack", str(archive), "--outdir", str(out_rename), "--exists", "rename"])
            self.assertIn("renamed to", rename_proc.stdout)
            self.assertEqual((out_rename / "file.txt").read_text(), "beta")
            self.assertEqual((out_rename / "file (1).txt").read_text(), "alpha")

            out_overwrite = root / "ex_overwrite"
            out_overwrite.mkdir()
            (out_overwrite / "file.txt").write_text("beta")
            self.run_cli(["unpack", str(archive), "--outdir", str(out_overwrite), "--exists", "overwrite"])
            self.assertEqual((out_overwrite / "file.txt").read_text(), "alpha")

            out_fail = root / "ex_fail"
            out_fail.mkdir()
            (out_fail / "file.txt").write_text("beta")
            fail_proc = self.run_cli(["unpack", str(archive), "--outdir", str(out_fail), "--exists", "fail"], expect=2)
            self.assertIn("Destination exists", fail_proc.stderr)

    def test_errors(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            bogus = root / "bogus.cfl"
            bogus.write_bytes(b"PK\x03\x04" + b"\x00" * 64)
            proc = self.run_cli(["list", str(bogus)], expect=2)
            self.assertIn("not a CFL archive", proc.stderr)

            empty_dir = root / "nothing"
            empty_dir.mkdir()
            proc = self.run_cli(["pack", str(root / "out.cfl"), str(empty_dir)], expect=1)
            self.assertIn("Nothing to pack", proc.stderr)
            self.assertFalse((root / "out.cfl").exists())

            proc = self.run_cli(["unpack", str(root / "missing.cfl")], expect=2)
            self.assertIn("Error:", proc.stderr)


if __name__ == "__main__":
    unittest.main()
