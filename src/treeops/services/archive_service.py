"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/archive_service.py
ZIP archive creation and extraction.
"""
import asyncio
import logging
import os
import zipfile
from typing import Iterable

from treeops.core.paths import PathLike, ensure_parent_dir, resolve
from treeops.errors import FileIOError, InvalidArgumentError, PathNotFoundError, translate_os_error

logger = logging.getLogger(__name__)

COMPRESSION_LEVEL = 9


def _add_directory(archive: zipfile.ZipFile, directory: str) -> None:
    """Add a directory recursively, rooted at its own basename."""
    base = os.path.basename(directory.rstrip(os.sep))
    archive.write(directory, base)
    for current, dirs, files in os.walk(directory):
        dirs.sort()
        rel = os.path.relpath(current, directory)
        prefix = base if rel == "." else os.path.join(base, rel)
        for name in dirs:
            archive.write(os.path.join(current, name), os.path.join(prefix, name))
        for name in sorted(files):
            archive.write(os.path.join(current, name), os.path.join(prefix, name))


def _create(paths: Iterable[str], output: str) -> None:
    with zipfile.ZipFile(output, "w", compression=zipfile.ZIP_DEFLATED,
                         compresslevel=COMPRESSION_LEVEL) as archive:
        for path in paths:
            if os.path.isdir(path):
                _add_directory(archive, path)
            else:
                archive.write(path, os.path.basename(path))


def _check_members(archive: zipfile.ZipFile, output_dir: str) -> None:
    root = os.path.realpath(output_dir)
    for member in archive.namelist():
        target = os.path.realpath(os.path.join(root, member))
        if os.path.commonpath([root, target]) != root:
            raise InvalidArgumentError(f"Archive member escapes output directory: {member}", member)


def _extract(archive_path: str, output_dir: str) -> None:
    with zipfile.ZipFile(archive_path) as archive:
        _check_members(archive, output_dir)
        os.makedirs(output_dir, exist_ok=True)
        archive.extractall(output_dir)


class ArchiveService:

    @staticmethod
    async def create_zip(paths: Iterable[PathLike], output: PathLike) -> None:
        """
        Write a DEFLATE-compressed archive. Files are stored under their basename,
        directories recursively under theirs.
        """
        sources = [resolve(p) for p in paths]
        if not sources:
            raise InvalidArgumentError("Nothing to archive")
        output_path = resolve(output)
        for source in sources:
            if not await asyncio.to_thread(os.path.exists, source):
                raise PathNotFoundError(f"Path not found: {source}", source)

        try:
            await ensure_parent_dir(output_path)
            await asyncio.to_thread(_create, sources, output_path)
        except OSError as e:
            raise translate_os_error(e, e.filename or output_path) from e
        logger.debug(f"Created archive {output_path} from {len(sources)} path(s)")

    @staticmethod
    async def extract_zip(archive: PathLike, output_dir: PathLike) -> None:
        """Extract an archive; members that would land outside `output_dir` are rejected."""
        archive_path, out = resolve(archive), resolve(output_dir)
        try:
            await asyncio.to_thread(_extract, archive_path, out)
        except zipfile.BadZipFile as e:
            raise FileIOError(f"Not a valid zip archive: {archive_path}", archive_path) from e
        except OSError as e:
            raise translate_os_error(e, e.filename or archive_path) from e
