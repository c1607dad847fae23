"""
Shared fixtures for treeops tests.
Creates isolated temporary directories with controlled test files.
"""
import os
import tempfile
from pathlib import Path
from typing import Dict, List

import pytest


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def test_files(temp_dir) -> Dict[str, Path]:
    """
    Creates a controlled tree for walk and duplicate scenarios:
    - 2 identical files in the root (duplicate pair #1)
    - 1 identical pair split across root and a nested directory (duplicate pair #2)
    - 2 unique files, one of them the same size as pair #1
    - 2 empty files (zero-byte duplicates)
    """
    files = {}
    (temp_dir / "sub" / "deeper").mkdir(parents=True)

    # Duplicate pair #1 (1KB of 'A')
    content_a = b"A" * 1024
    files["dup1_a"] = temp_dir / "dup1_a.txt"
    files["dup1_b"] = temp_dir / "sub" / "dup1_b.txt"
    files["dup1_a"].write_bytes(content_a)
    files["dup1_b"].write_bytes(content_a)

    # Duplicate pair #2 (2KB of 'B')
    content_b = b"B" * 2048
    files["dup2_a"] = temp_dir / "dup2_a.bin"
    files["dup2_b"] = temp_dir / "sub" / "deeper" / "dup2_b.bin"
    files["dup2_a"].write_bytes(content_b)
    files["dup2_b"].write_bytes(content_b)

    # Unique files; unique1 shares its size with pair #1
    files["unique1"] = temp_dir / "unique1.txt"
    files["unique1"].write_bytes(b"C" * 1024)
    files["unique2"] = temp_dir / "sub" / "unique2.txt"
    files["unique2"].write_bytes(b"D" * 2500)

    # Empty files are duplicates of each other
    files["empty1"] = temp_dir / "empty1.log"
    files["empty2"] = temp_dir / "sub" / "empty2.log"
    files["empty1"].write_bytes(b"")
    files["empty2"].write_bytes(b"")

    return files


@pytest.fixture
def scandir_handles(monkeypatch) -> List:
    """Records every os.scandir iterator opened during the test and whether it was closed."""
    handles = []
    real_scandir = os.scandir

    class TrackedScandir:
        def __init__(self, path):
            self._it = real_scandir(path)
            self.closed = False
            handles.append(self)

        def __iter__(self):
            return iter(self._it)

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            self.close()

        def close(self):
            self.closed = True
            self._it.close()

    monkeypatch.setattr(os, "scandir", TrackedScandir)
    return handles
