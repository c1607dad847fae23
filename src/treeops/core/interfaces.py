"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the engine.
These protocols enforce structural typing using Python's `typing.Protocol` so that
components can be swapped (e.g. a fake walker in tests) without inheritance.

Key Components:
---------------
- HashAlgorithm: Incremental hash object (hashlib / xxhash compatible).
- HashEngine: Computes the content digest of a file.
- StatProvider: Produces PathDescriptor metadata for a path.
- TreeWalker: Lazily enumerates files under a directory.
- DuplicateDetector: Groups files with identical content.
"""

from typing import TYPE_CHECKING, AsyncIterator, List, Optional, Protocol

if TYPE_CHECKING:
    from treeops.core.models import FingerprintGroup, PathDescriptor


class HashAlgorithm(Protocol):
    """
    Interface for streaming hash functions.

    Matches the update/hexdigest shape shared by hashlib and xxhash objects.
    """
    def update(self, data: bytes) -> None: ...
    def hexdigest(self) -> str: ...


class HashEngine(Protocol):
    """Interface for computing a file's content fingerprint."""
    async def digest(self, path: str, algorithm: str = "sha256") -> str: ...


class StatProvider(Protocol):
    """Interface for OS metadata queries."""
    async def stat(self, path: str) -> "PathDescriptor": ...


class TreeWalker(Protocol):
    """
    Interface for recursive file enumeration.

    Methods:
        walk: Returns a lazy, non-restartable async sequence of absolute file paths.
    """
    def walk(self, root: str, pattern: Optional[str] = None) -> AsyncIterator[str]: ...


class DuplicateDetector(Protocol):
    """Interface for content-based duplicate grouping."""
    async def find_duplicates(
        self,
        root: str,
        algorithm: str = "sha256",
        pattern: Optional[str] = None,
    ) -> List["FingerprintGroup"]: ...
