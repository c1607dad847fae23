"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/permission_service.py
Reads and changes the nine permission bits; checks effective access of this process.
"""
import asyncio
import os
from typing import Union

from treeops.core.models import AccessMode, Permissions
from treeops.core.paths import PathLike, resolve
from treeops.core.stat_provider import mode_to_permissions, permissions_to_mode
from treeops.errors import InvalidArgumentError, translate_os_error

_ACCESS_FLAGS = {
    AccessMode.READ: os.R_OK,
    AccessMode.WRITE: os.W_OK,
    AccessMode.EXECUTE: os.X_OK,
}


async def _stat_mode(path: str) -> int:
    try:
        return (await asyncio.to_thread(os.stat, path)).st_mode
    except OSError as e:
        raise translate_os_error(e, path) from e


async def _chmod(path: str, mode: int) -> None:
    try:
        await asyncio.to_thread(os.chmod, path, mode)
    except OSError as e:
        raise translate_os_error(e, path) from e


class PermissionService:

    @staticmethod
    async def get_permissions(file_path: PathLike) -> Permissions:
        return mode_to_permissions(await _stat_mode(resolve(file_path)))

    @staticmethod
    async def set_permissions(file_path: PathLike, permissions: Permissions) -> None:
        await _chmod(resolve(file_path), permissions_to_mode(permissions))

    @staticmethod
    async def check_access(file_path: PathLike, mode: Union[AccessMode, str]) -> bool:
        """True when this process may access the path in the given mode."""
        try:
            access_mode = AccessMode(mode)
        except ValueError as e:
            raise InvalidArgumentError(
                f"Unknown access mode: {mode!r} (expected read, write or execute)"
            ) from e
        return await asyncio.to_thread(os.access, resolve(file_path), _ACCESS_FLAGS[access_mode])

    @staticmethod
    async def make_executable(file_path: PathLike) -> None:
        """Add execute permission for owner, group and others."""
        path = resolve(file_path)
        await _chmod(path, await _stat_mode(path) | 0o111)
