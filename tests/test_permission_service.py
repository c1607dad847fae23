"""
Tests for PermissionService.
"""
import os
import stat
import sys

import pytest
from treeops.core.models import AccessMode
from treeops.core.stat_provider import mode_to_permissions
from treeops.services.permission_service import PermissionService
from treeops.errors import InvalidArgumentError, PathNotFoundError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")


@pytest.mark.asyncio
async def test_set_then_get_round_trip(temp_dir):
    path = temp_dir / "f"
    path.write_text("x")

    await PermissionService.set_permissions(path, mode_to_permissions(0o754))

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o754
    assert str(await PermissionService.get_permissions(path)) == "rwxr-xr--"


@pytest.mark.asyncio
async def test_make_executable_adds_all_execute_bits(temp_dir):
    path = temp_dir / "script.sh"
    path.write_text("#!/bin/sh\n")
    os.chmod(path, 0o640)

    await PermissionService.make_executable(path)

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o751


@pytest.mark.asyncio
async def test_check_access(temp_dir):
    path = temp_dir / "f"
    path.write_text("x")
    os.chmod(path, 0o600)

    assert await PermissionService.check_access(path, "read") is True
    assert await PermissionService.check_access(path, AccessMode.WRITE) is True
    assert await PermissionService.check_access(path, "execute") is False


@pytest.mark.asyncio
async def test_check_access_unknown_mode(temp_dir):
    with pytest.raises(InvalidArgumentError):
        await PermissionService.check_access(temp_dir, "delete")


@pytest.mark.asyncio
async def test_get_permissions_missing(temp_dir):
    with pytest.raises(PathNotFoundError):
        await PermissionService.get_permissions(temp_dir / "missing")
