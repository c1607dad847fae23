"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/directory_service.py
Directory listing, creation, removal and recursive copy.
"""
import asyncio
import errno
import logging
import os
import shutil
from typing import List, Tuple

from treeops.core.models import DirectoryEntry, EntryKind
from treeops.core.paths import PathLike, resolve
from treeops.core.stat_provider import StatProviderImpl
from treeops.errors import InvalidArgumentError, NotADirectoryPathError, translate_os_error
from treeops.services.file_service import FileService

logger = logging.getLogger(__name__)

_stat_provider = StatProviderImpl()


def _scan(directory: str) -> List[Tuple[str, str, bool]]:
    """(name, path, is_dir) for every entry; symlinks are not followed."""
    with os.scandir(directory) as it:
        return [(entry.name, entry.path, entry.is_dir(follow_symlinks=False)) for entry in it]


class DirectoryService:

    @staticmethod
    async def list_directory(dir_path: PathLike, recursive: bool = False,
                             show_hidden: bool = False) -> List[DirectoryEntry]:
        """
        Describe every entry of a directory; with `recursive`, subdirectories carry
        their own contents. Entries are sorted by name. Dot-entries are skipped
        unless `show_hidden` is set.
        """
        path = resolve(dir_path)
        descriptor = await _stat_provider.stat(path)
        if descriptor.kind != EntryKind.DIRECTORY:
            raise NotADirectoryPathError(f"Not a directory: {path}", path)

        try:
            names = sorted(await asyncio.to_thread(os.listdir, path))
        except OSError as e:
            raise translate_os_error(e, path) from e
        if not show_hidden:
            names = [n for n in names if not n.startswith(".")]

        async def describe(name: str) -> DirectoryEntry:
            child = await _stat_provider.stat(os.path.join(path, name))
            if recursive and child.kind == EntryKind.DIRECTORY:
                contents = await DirectoryService.list_directory(child.path, True, show_hidden)
                return DirectoryEntry(descriptor=child, contents=contents)
            return DirectoryEntry(descriptor=child)

        return list(await asyncio.gather(*(describe(n) for n in names)))

    @staticmethod
    async def make_directory(dir_path: PathLike, recursive: bool = True) -> None:
        path = resolve(dir_path)
        try:
            if recursive:
                await asyncio.to_thread(os.makedirs, path, exist_ok=True)
            else:
                await asyncio.to_thread(os.mkdir, path)
        except FileExistsError as e:
            raise InvalidArgumentError(f"Path already exists: {path}", path) from e
        except OSError as e:
            raise translate_os_error(e, path) from e

    @staticmethod
    async def remove_directory(dir_path: PathLike, recursive: bool = False) -> None:
        """Remove a directory; without `recursive` it must be empty."""
        path = resolve(dir_path)
        descriptor = await _stat_provider.stat(path)
        if descriptor.kind != EntryKind.DIRECTORY:
            raise NotADirectoryPathError(f"Not a directory: {path}", path)
        try:
            if recursive:
                await asyncio.to_thread(shutil.rmtree, path)
            else:
                await asyncio.to_thread(os.rmdir, path)
        except OSError as e:
            if not recursive and e.errno in (errno.ENOTEMPTY, errno.EEXIST):
                raise InvalidArgumentError(f"Directory not empty: {path}", path) from e
            raise translate_os_error(e, path) from e
        logger.debug(f"Removed directory {path} (recursive={recursive})")

    @staticmethod
    async def copy_directory(source: PathLike, dest: PathLike, overwrite: bool = False) -> None:
        """Copy a directory tree file by file."""
        src_path, dest_path = resolve(source), resolve(dest)
        descriptor = await _stat_provider.stat(src_path)
        if descriptor.kind != EntryKind.DIRECTORY:
            raise NotADirectoryPathError(f"Source is not a directory: {src_path}", src_path)
        if not overwrite and await asyncio.to_thread(os.path.lexists, dest_path):
            raise InvalidArgumentError(f"Destination directory already exists: {dest_path}", dest_path)

        await DirectoryService.make_directory(dest_path)
        try:
            entries = await asyncio.to_thread(_scan, src_path)
        except OSError as e:
            raise translate_os_error(e, src_path) from e

        for name, entry_path, is_dir in entries:
            target = os.path.join(dest_path, name)
            if is_dir:
                await DirectoryService.copy_directory(entry_path, target, overwrite)
            else:
                await FileService.copy_file(entry_path, target, overwrite)
