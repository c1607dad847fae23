"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/metadata_service.py
Extended metadata, file comparison, symbolic links and timestamps.
"""
import asyncio
import mimetypes
import os
from datetime import datetime
from typing import Optional

from treeops.core.models import EntryKind, ExtendedMetadata, FileComparison
from treeops.core.paths import PathLike, resolve
from treeops.core.stat_provider import StatProviderImpl
from treeops.errors import InvalidArgumentError, translate_os_error

COMPARE_CHUNK_SIZE = 64 * 1024

_stat_provider = StatProviderImpl()


def _same_content(path_a: str, path_b: str, chunk_size: int = COMPARE_CHUNK_SIZE) -> bool:
    with open(path_a, "rb") as fa, open(path_b, "rb") as fb:
        while True:
            chunk_a = fa.read(chunk_size)
            chunk_b = fb.read(chunk_size)
            if chunk_a != chunk_b:
                return False
            if not chunk_a:
                return True


class MetadataService:

    @staticmethod
    async def get_extended_metadata(file_path: PathLike) -> ExtendedMetadata:
        path = resolve(file_path)
        descriptor = await _stat_provider.stat(path)
        mime_type, _ = mimetypes.guess_type(path)
        return ExtendedMetadata(
            name=descriptor.name,
            path=path,
            extension=os.path.splitext(descriptor.name)[1],
            mime_type=mime_type,
            size=descriptor.size,
            created=descriptor.created,
            modified=descriptor.modified,
            accessed=descriptor.accessed,
            is_symlink=descriptor.kind == EntryKind.SYMLINK,
            is_hidden=descriptor.name.startswith("."),
            parent_dir=descriptor.parent,
            absolute_path=path,
            relative_path=os.path.relpath(path),
        )

    @staticmethod
    async def compare_files(first: PathLike, second: PathLike) -> FileComparison:
        """
        Report which of size, content, permissions and mtime differ.
        Content is compared byte by byte only when sizes match.
        """
        path_a, path_b = resolve(first), resolve(second)
        a = await _stat_provider.stat(path_a)
        b = await _stat_provider.stat(path_b)
        for descriptor in (a, b):
            if descriptor.kind == EntryKind.DIRECTORY:
                raise InvalidArgumentError(f"Cannot compare directory: {descriptor.path}", descriptor.path)

        size_differs = a.size != b.size
        if size_differs:
            content_differs = True
        else:
            try:
                content_differs = not await asyncio.to_thread(_same_content, path_a, path_b)
            except OSError as e:
                raise translate_os_error(e, e.filename or path_a) from e

        return FileComparison(
            size=size_differs,
            content=content_differs,
            permissions=a.mode != b.mode,
            modification_time=a.modified != b.modified,
        )

    @staticmethod
    async def create_symlink(target: PathLike, link_path: PathLike) -> None:
        """Create `link_path` pointing at `target`; the target need not exist."""
        link = resolve(link_path)
        try:
            await asyncio.to_thread(os.symlink, os.fspath(target), link)
        except FileExistsError as e:
            raise InvalidArgumentError(f"Path already exists: {link}", link) from e
        except OSError as e:
            raise translate_os_error(e, link) from e

    @staticmethod
    async def read_symlink(link_path: PathLike) -> str:
        link = resolve(link_path)
        descriptor = await _stat_provider.stat(link)
        if descriptor.kind != EntryKind.SYMLINK:
            raise InvalidArgumentError(f"Not a symbolic link: {link}", link)
        try:
            return await asyncio.to_thread(os.readlink, link)
        except OSError as e:
            raise translate_os_error(e, link) from e

    @staticmethod
    async def touch_file(file_path: PathLike) -> None:
        """Update access and modification times, creating the file when missing."""
        path = resolve(file_path)

        def touch() -> None:
            with open(path, "a"):
                pass
            os.utime(path, None)

        try:
            await asyncio.to_thread(touch)
        except OSError as e:
            raise translate_os_error(e, path) from e

    @staticmethod
    async def set_timestamps(file_path: PathLike,
                             accessed: Optional[datetime] = None,
                             modified: Optional[datetime] = None) -> None:
        """Set either timestamp; an omitted one keeps its current value."""
        path = resolve(file_path)
        descriptor = await _stat_provider.stat(path)
        atime = (accessed or descriptor.accessed).timestamp()
        mtime = (modified or descriptor.modified).timestamp()
        try:
            await asyncio.to_thread(os.utime, path, (atime, mtime))
        except OSError as e:
            raise translate_os_error(e, path) from e
