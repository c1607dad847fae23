"""
Tests for DuplicateDetectorImpl: grouping correctness, size stage transparency,
ordering and progress reporting.
"""
import hashlib

import pytest
from treeops.core.duplicates import DuplicateDetectorImpl
from treeops.core.walker import TreeWalkerImpl
from treeops.errors import PathNotFoundError, UnsupportedAlgorithmError


def as_path_sets(groups):
    return sorted(sorted(g.paths) for g in groups)


class FakeWalker:
    """Walker returning a fixed list of paths in a fixed order."""

    def __init__(self, paths):
        self.paths = [str(p) for p in paths]

    def walk(self, root, pattern=None):
        async def gen():
            for p in self.paths:
                yield p
        return gen()


class TestFindDuplicates:

    @pytest.mark.asyncio
    async def test_groups_identical_content(self, temp_dir, test_files):
        groups = await DuplicateDetectorImpl().find_duplicates(temp_dir)

        assert as_path_sets(groups) == sorted([
            sorted([str(test_files["dup1_a"]), str(test_files["dup1_b"])]),
            sorted([str(test_files["dup2_a"]), str(test_files["dup2_b"])]),
            sorted([str(test_files["empty1"]), str(test_files["empty2"])]),
        ])

    @pytest.mark.asyncio
    async def test_group_records_digest_and_size(self, temp_dir, test_files):
        groups = await DuplicateDetectorImpl().find_duplicates(temp_dir, algorithm="sha256")
        by_size = {g.size: g for g in groups}

        assert set(by_size) == {0, 1024, 2048}
        assert by_size[1024].digest == hashlib.sha256(b"A" * 1024).hexdigest()
        assert by_size[2048].reclaimable_bytes == 2048
        assert all(len(g.paths) >= 2 for g in groups)

    @pytest.mark.asyncio
    async def test_three_files_two_equal(self, temp_dir):
        (temp_dir / "a").write_text("hello")
        (temp_dir / "b").write_text("hello")
        (temp_dir / "c").write_text("world")

        groups = await DuplicateDetectorImpl().find_duplicates(temp_dir)

        assert len(groups) == 1
        assert sorted(groups[0].paths) == [str(temp_dir / "a"), str(temp_dir / "b")]
        assert groups[0].size == 5

    @pytest.mark.asyncio
    async def test_no_duplicates(self, temp_dir):
        for i in range(5):
            (temp_dir / f"f{i}").write_text("x" * (i + 1))
        assert await DuplicateDetectorImpl().find_duplicates(temp_dir) == []

    @pytest.mark.asyncio
    async def test_empty_directory(self, temp_dir):
        assert await DuplicateDetectorImpl().find_duplicates(temp_dir) == []

    @pytest.mark.asyncio
    async def test_size_stage_does_not_change_result(self, temp_dir, test_files):
        with_stage = await DuplicateDetectorImpl(size_prefilter=True).find_duplicates(temp_dir)
        without_stage = await DuplicateDetectorImpl(size_prefilter=False).find_duplicates(temp_dir)
        assert as_path_sets(with_stage) == as_path_sets(without_stage)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("algorithm", ["md5", "sha1", "sha512", "xxh64", "xxh3_64"])
    async def test_algorithm_does_not_change_grouping(self, temp_dir, test_files, algorithm):
        baseline = await DuplicateDetectorImpl().find_duplicates(temp_dir)
        other = await DuplicateDetectorImpl().find_duplicates(temp_dir, algorithm=algorithm)
        assert as_path_sets(other) == as_path_sets(baseline)

    @pytest.mark.asyncio
    async def test_pattern_limits_candidates(self, temp_dir, test_files):
        groups = await DuplicateDetectorImpl().find_duplicates(temp_dir, pattern=r"\.txt$")
        assert as_path_sets(groups) == [sorted([str(test_files["dup1_a"]), str(test_files["dup1_b"])])]

    @pytest.mark.asyncio
    async def test_members_keep_walk_order(self, temp_dir):
        names = ["z", "m", "a"]
        for name in names:
            (temp_dir / name).write_bytes(b"same")
        walker = FakeWalker(temp_dir / n for n in names)

        groups = await DuplicateDetectorImpl(walker=walker).find_duplicates(temp_dir)
        assert groups[0].paths == tuple(str(temp_dir / n) for n in names)

    @pytest.mark.asyncio
    async def test_progress_callback_reports_hashing(self, temp_dir, test_files):
        calls = []
        await DuplicateDetectorImpl().find_duplicates(
            temp_dir, progress_callback=lambda stage, current, total: calls.append((stage, current, total))
        )
        assert calls[0][0] == "walking"
        hashing = [c for c in calls if c[0] == "hashing"]
        assert hashing
        assert hashing[-1][1] == hashing[-1][2]

    @pytest.mark.asyncio
    async def test_unsupported_algorithm(self, temp_dir):
        with pytest.raises(UnsupportedAlgorithmError):
            await DuplicateDetectorImpl().find_duplicates(temp_dir, algorithm="crc32")

    @pytest.mark.asyncio
    async def test_missing_root(self, temp_dir):
        detector = DuplicateDetectorImpl(walker=TreeWalkerImpl(max_concurrency=2))
        with pytest.raises(PathNotFoundError):
            await detector.find_duplicates(temp_dir / "missing")
