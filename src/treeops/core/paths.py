"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/paths.py
Path normalization used by every other component.
"""
import asyncio
import os
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


def resolve(path: PathLike) -> str:
    """
    Convert any input path to a normalized absolute path.
    Relative paths are anchored at the current working directory.
    Performs no existence check and does not follow symlinks.
    """
    return os.path.abspath(os.fspath(path))


async def ensure_parent_dir(path: PathLike) -> None:
    """Create the parent directory of `path` (and its ancestors) if missing."""
    parent = os.path.dirname(resolve(path))
    await asyncio.to_thread(os.makedirs, parent, exist_ok=True)
