"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/walker.py
Implements recursive file enumeration.
Features:
- Lazy async sequence of absolute file paths (directories are never yielded)
- Sibling subdirectories are listed concurrently, level by level
- Optional regular-expression filter on basenames, compiled once up front
- Fail-fast: an unreadable subdirectory aborts the whole walk
"""

import asyncio
import logging
import os
import re
import stat
from typing import AsyncIterator, List, Optional, Pattern, Tuple

from treeops.core.interfaces import TreeWalker
from treeops.core.paths import PathLike, resolve
from treeops.errors import (
    InvalidPatternError,
    NotADirectoryPathError,
    PathNotFoundError,
    translate_os_error,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 16


def compile_pattern(pattern: Optional[str]) -> Optional[Pattern[str]]:
    """Compile a caller-supplied regular expression, rejecting malformed input."""
    if pattern is None or pattern == "":
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(f"Invalid pattern '{pattern}': {e}") from e


class TreeWalkerImpl(TreeWalker):
    """
    Walks a directory tree breadth-first and yields every file below `root`.

    Attributes:
        max_concurrency: Upper bound on directory listings in flight at once
    """

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        self.max_concurrency = max_concurrency

    def walk(self, root: PathLike, pattern: Optional[str] = None) -> AsyncIterator[str]:
        """
        Returns a lazy, non-restartable sequence of absolute file paths.
        The pattern is validated here, before any I/O; the root is checked on first iteration.
        """
        compiled = compile_pattern(pattern)
        return self._walk(resolve(root), compiled)

    async def _walk(self, root: str, pattern: Optional[Pattern[str]]) -> AsyncIterator[str]:
        await self._check_root(root)
        logger.debug(f"Starting walk: {root} (pattern={pattern.pattern if pattern else None})")

        semaphore = asyncio.Semaphore(self.max_concurrency)
        pending = [root]
        while pending:
            listings = await asyncio.gather(*(self._list_dir(d, semaphore) for d in pending))
            pending = []
            for files, subdirs in listings:
                for file_path in files:
                    if pattern is None or pattern.search(os.path.basename(file_path)):
                        yield file_path
                pending.extend(subdirs)

    @staticmethod
    async def _check_root(root: str) -> None:
        try:
            st = await asyncio.to_thread(os.stat, root)
        except FileNotFoundError as e:
            raise PathNotFoundError(f"Directory does not exist: {root}", root) from e
        except OSError as e:
            raise translate_os_error(e, root) from e
        if not stat.S_ISDIR(st.st_mode):
            raise NotADirectoryPathError(f"Not a directory: {root}", root)

    @staticmethod
    async def _list_dir(directory: str, semaphore: asyncio.Semaphore) -> Tuple[List[str], List[str]]:
        async with semaphore:
            return await asyncio.to_thread(TreeWalkerImpl._scan, directory)

    @staticmethod
    def _scan(directory: str) -> Tuple[List[str], List[str]]:
        """
        List one directory. Returns (files, subdirectories).
        Real subdirectories are descended; symlinks to directories are not.
        """
        files: List[str] = []
        subdirs: List[str] = []
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.is_dir(follow_symlinks=False):
                        subdirs.append(entry.path)
                    elif entry.is_file():
                        files.append(entry.path)
                    else:
                        logger.debug(f"Skipping non-regular entry: {entry.path}")
        except OSError as e:
            raise translate_os_error(e, directory) from e
        return files, subdirs
