"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stat_provider.py
Wraps OS metadata queries into PathDescriptor records and converts between raw
mode integers and owner/group/others permission structures.
"""

import asyncio
import logging
import os
import stat as stat_module
from datetime import datetime, timezone

from treeops.core.interfaces import StatProvider
from treeops.core.models import EntryKind, PathDescriptor, PermissionBits, Permissions
from treeops.core.paths import PathLike, resolve
from treeops.errors import translate_os_error

logger = logging.getLogger(__name__)

OWNER_READ, OWNER_WRITE, OWNER_EXECUTE = 0o400, 0o200, 0o100
GROUP_READ, GROUP_WRITE, GROUP_EXECUTE = 0o040, 0o020, 0o010
OTHERS_READ, OTHERS_WRITE, OTHERS_EXECUTE = 0o004, 0o002, 0o001
PERMISSION_MASK = 0o777

# (read, write, execute) masks per class
_CLASS_MASKS = {
    "owner": (OWNER_READ, OWNER_WRITE, OWNER_EXECUTE),
    "group": (GROUP_READ, GROUP_WRITE, GROUP_EXECUTE),
    "others": (OTHERS_READ, OTHERS_WRITE, OTHERS_EXECUTE),
}


def mode_to_permissions(mode: int) -> Permissions:
    """Mask a raw st_mode value into a Permissions structure (nine bits only)."""
    def bits(masks) -> PermissionBits:
        read, write, execute = masks
        return PermissionBits(
            read=bool(mode & read),
            write=bool(mode & write),
            execute=bool(mode & execute),
        )

    return Permissions(
        owner=bits(_CLASS_MASKS["owner"]),
        group=bits(_CLASS_MASKS["group"]),
        others=bits(_CLASS_MASKS["others"]),
    )


def permissions_to_mode(permissions: Permissions) -> int:
    """Exact inverse of mode_to_permissions: bitwise OR of the same masks."""
    mode = 0
    for name, (read, write, execute) in _CLASS_MASKS.items():
        bits: PermissionBits = getattr(permissions, name)
        if bits.read:
            mode |= read
        if bits.write:
            mode |= write
        if bits.execute:
            mode |= execute
    return mode


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def descriptor_from_stat(path: str, st: os.stat_result) -> PathDescriptor:
    """Build a PathDescriptor from an lstat result."""
    if stat_module.S_ISLNK(st.st_mode):
        kind = EntryKind.SYMLINK
    elif stat_module.S_ISDIR(st.st_mode):
        kind = EntryKind.DIRECTORY
    else:
        kind = EntryKind.FILE

    # st_birthtime exists on macOS/BSD/Windows; st_ctime is the closest on Linux
    created = getattr(st, "st_birthtime", None) or st.st_ctime

    return PathDescriptor(
        path=path,
        name=os.path.basename(path),
        parent=os.path.dirname(path),
        kind=kind,
        size=st.st_size,
        mode=st.st_mode & PERMISSION_MASK,
        permissions=mode_to_permissions(st.st_mode),
        created=_timestamp(created),
        modified=_timestamp(st.st_mtime),
        accessed=_timestamp(st.st_atime),
    )


class StatProviderImpl(StatProvider):
    """
    Produces a fresh PathDescriptor on every call.
    Symbolic links are described as links (lstat), not as their targets.
    """

    async def stat(self, path: PathLike) -> PathDescriptor:
        abs_path = resolve(path)
        try:
            st = await asyncio.to_thread(os.lstat, abs_path)
        except OSError as e:
            raise translate_os_error(e, abs_path) from e
        return descriptor_from_stat(abs_path, st)
