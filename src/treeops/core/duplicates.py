"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/duplicates.py
Content-addressed duplicate detection built from a TreeWalker and a HashEngine.

Pipeline:
1. Walk the tree and collect every file path
2. (optional) Group by size and drop files whose size is unique - they cannot have a twin
3. Hash the remaining candidates
4. Group by digest and keep groups with two or more members

The size stage only skips work; it never changes which groups are reported.
"""

import asyncio
import logging
import os
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from treeops.core.hasher import DEFAULT_ALGORITHM, HashEngineImpl, normalize_algorithm_name
from treeops.core.interfaces import DuplicateDetector, HashEngine, TreeWalker
from treeops.core.models import FingerprintGroup
from treeops.core.paths import PathLike
from treeops.core.walker import TreeWalkerImpl
from treeops.errors import translate_os_error

logger = logging.getLogger(__name__)

DEFAULT_HASH_CONCURRENCY = 8

ProgressCallback = Callable[[str, int, Optional[int]], None]


class DuplicateDetectorImpl(DuplicateDetector):
    """
    Groups files under a directory by identical content digest.
    Uses injected walker/hasher instances for flexibility and testability.
    """

    def __init__(
        self,
        walker: Optional[TreeWalker] = None,
        hasher: Optional[HashEngine] = None,
        size_prefilter: bool = True,
        max_concurrency: int = DEFAULT_HASH_CONCURRENCY,
    ):
        self.walker = walker or TreeWalkerImpl()
        self.hasher = hasher or HashEngineImpl()
        self.size_prefilter = size_prefilter
        self.max_concurrency = max_concurrency

    async def find_duplicates(
        self,
        root: PathLike,
        algorithm: str = DEFAULT_ALGORITHM,
        pattern: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[FingerprintGroup]:
        algorithm = normalize_algorithm_name(algorithm)

        paths = [path async for path in self.walker.walk(root, pattern)]
        logger.debug(f"Walk found {len(paths)} files under {root}")
        if progress_callback:
            progress_callback("walking", len(paths), None)

        sizes = await self._stat_sizes(paths)
        candidates = paths
        if self.size_prefilter:
            size_groups = self._group_by(paths, sizes.__getitem__)
            candidates = [p for group in size_groups.values() for p in group]
            logger.debug(f"Size stage kept {len(candidates)} of {len(paths)} files")

        digests = await self._hash_all(candidates, algorithm, progress_callback)
        digest_groups = self._group_by(candidates, digests.__getitem__)

        groups = [
            FingerprintGroup(digest=digest, size=sizes[members[0]], paths=tuple(members))
            for digest, members in digest_groups.items()
        ]
        logger.debug(f"Found {len(groups)} duplicate groups")
        return groups

    async def _stat_sizes(self, paths: List[str]) -> Dict[str, int]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def size_of(path: str) -> Tuple[str, int]:
            async with semaphore:
                try:
                    return path, await asyncio.to_thread(os.path.getsize, path)
                except OSError as e:
                    raise translate_os_error(e, path) from e

        return dict(await asyncio.gather(*(size_of(p) for p in paths)))

    async def _hash_all(
        self,
        paths: List[str],
        algorithm: str,
        progress_callback: Optional[ProgressCallback],
    ) -> Dict[str, str]:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        total = len(paths)
        done = 0

        async def hash_one(path: str) -> Tuple[str, str]:
            nonlocal done
            async with semaphore:
                result = await self.hasher.digest(path, algorithm)
            done += 1
            if progress_callback:
                progress_callback("hashing", done, total)
            return path, result

        return dict(await asyncio.gather(*(hash_one(p) for p in paths)))

    @staticmethod
    def _group_by(paths: Iterable[str], key_func: Callable[[str], Any]) -> Dict[Any, List[str]]:
        """
        Helper method to group paths by any computed key.
        Keeps encounter order inside each group and drops groups with fewer than 2 members.
        """
        groups = defaultdict(list)
        for path in paths:
            groups[key_func(path)].append(path)
        return {key: group for key, group in groups.items() if len(group) >= 2}
