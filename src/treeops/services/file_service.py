"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Single-file operations: read, write, append, delete (optionally to the system trash),
copy and move. Destinations get their parent directories created on demand.
"""
import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Callable, List, Optional

from send2trash import send2trash

from treeops.core.models import EntryKind, FileContent
from treeops.core.paths import PathLike, ensure_parent_dir, resolve
from treeops.core.stat_provider import StatProviderImpl
from treeops.errors import (
    FileIOError,
    InvalidArgumentError,
    PathNotFoundError,
    TreeOpsError,
    translate_os_error,
)

logger = logging.getLogger(__name__)

_stat_provider = StatProviderImpl()


async def _ensure_parent(path: str) -> None:
    try:
        await ensure_parent_dir(path)
    except OSError as e:
        raise translate_os_error(e, os.path.dirname(path)) from e


async def _reject_existing(path: str, overwrite: bool) -> None:
    if not overwrite and await asyncio.to_thread(os.path.lexists, path):
        raise InvalidArgumentError(f"Destination file already exists: {path}", path)


class FileService:
    """
    File operations for the dispatch layer.
    Every method takes raw path strings and resolves them itself.
    """

    @staticmethod
    async def read_file(file_path: PathLike, encoding: str = "utf-8") -> FileContent:
        """Read a text file together with its metadata."""
        path = resolve(file_path)
        descriptor = await _stat_provider.stat(path)
        if descriptor.kind == EntryKind.DIRECTORY:
            raise InvalidArgumentError(f"Cannot read directory as file: {path}", path)
        try:
            content = await asyncio.to_thread(Path(path).read_text, encoding=encoding)
        except OSError as e:
            raise translate_os_error(e, path) from e
        except (UnicodeDecodeError, LookupError) as e:
            raise FileIOError(f"Cannot decode {path} as {encoding}: {e}", path) from e
        return FileContent(descriptor=descriptor, content=content)

    @staticmethod
    async def write_file(file_path: PathLike, content: str, encoding: str = "utf-8") -> None:
        path = resolve(file_path)
        await _ensure_parent(path)
        try:
            await asyncio.to_thread(Path(path).write_text, content, encoding=encoding)
        except OSError as e:
            raise translate_os_error(e, path) from e

    @staticmethod
    async def append_file(file_path: PathLike, content: str, encoding: str = "utf-8") -> None:
        path = resolve(file_path)
        await _ensure_parent(path)

        def append() -> None:
            with open(path, "a", encoding=encoding) as f:
                f.write(content)

        try:
            await asyncio.to_thread(append)
        except OSError as e:
            raise translate_os_error(e, path) from e

    @staticmethod
    async def delete_file(file_path: PathLike, to_trash: bool = False) -> None:
        """Delete a single file; directories are rejected."""
        path = resolve(file_path)
        descriptor = await _stat_provider.stat(path)
        if descriptor.kind == EntryKind.DIRECTORY:
            raise InvalidArgumentError(f"Cannot delete directory as file: {path}", path)
        if to_trash:
            await FileService.move_to_trash(path)
            return
        try:
            await asyncio.to_thread(os.unlink, path)
        except OSError as e:
            raise translate_os_error(e, path) from e
        logger.debug(f"Deleted {path}")

    @staticmethod
    async def move_to_trash(file_path: PathLike) -> None:
        """Moves a file to the system trash."""
        path = resolve(file_path)

        if not await asyncio.to_thread(os.path.lexists, path):
            raise PathNotFoundError(f"File not found: {path}", path)

        try:
            await asyncio.to_thread(send2trash, path)
        except OSError as e:
            raise translate_os_error(e, path) from e
        logger.debug(f"Moved to trash: {path}")

    @classmethod
    async def move_multiple_to_trash(cls, file_paths: List[str],
                                     progress_callback: Optional[Callable[[int, int, str], None]] = None) -> None:
        """
        Moves multiple files to trash with error aggregation. Every path is attempted;
        failures are collected and raised together as one FileIOError.
        """
        errors = []
        for i, path in enumerate(file_paths, 1):
            if progress_callback:
                progress_callback(i, len(file_paths), path)
            try:
                await cls.move_to_trash(path)
            except TreeOpsError as e:
                errors.append((path, str(e)))

        if errors:
            error_summary = "\n".join(
                f"  • {Path(p).name}: {msg}"
                for p, msg in errors[:5]
            )
            if len(errors) > 5:
                error_summary += f"\n  • ...and {len(errors) - 5} more files"
            raise FileIOError(
                f"Failed to move {len(errors)} file(s) to trash:\n{error_summary}"
            )

    @staticmethod
    async def copy_file(source: PathLike, dest: PathLike, overwrite: bool = False) -> None:
        src_path, dest_path = resolve(source), resolve(dest)
        await _reject_existing(dest_path, overwrite)
        await _ensure_parent(dest_path)
        try:
            await asyncio.to_thread(shutil.copyfile, src_path, dest_path)
        except OSError as e:
            raise translate_os_error(e, e.filename or src_path) from e

    @staticmethod
    async def move_file(source: PathLike, dest: PathLike, overwrite: bool = False) -> None:
        src_path, dest_path = resolve(source), resolve(dest)
        await _reject_existing(dest_path, overwrite)
        await _ensure_parent(dest_path)
        try:
            await asyncio.to_thread(shutil.move, src_path, dest_path)
        except OSError as e:
            raise translate_os_error(e, e.filename or src_path) from e
