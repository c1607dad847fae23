"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/hasher.py
Streaming content fingerprints with pluggable hash algorithms.

Cryptographic digests come from hashlib; xxHash variants from xxhash, kept for fast
non-cryptographic fingerprints. Files are read in fixed-size chunks so memory use
does not grow with file size.
"""

import asyncio
import hashlib
import logging
from typing import Callable, Dict, List

import xxhash

from treeops.core.interfaces import HashAlgorithm, HashEngine
from treeops.core.paths import PathLike, resolve
from treeops.errors import UnsupportedAlgorithmError, translate_os_error

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "sha256"
DEFAULT_CHUNK_SIZE = 64 * 1024


# Use the same way to register any other streaming hash constructor
HASH_ALGORITHMS: Dict[str, Callable[[], HashAlgorithm]] = {
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
    "xxh64": xxhash.xxh64,
    "xxh3_64": xxhash.xxh3_64,
    "xxh3_128": xxhash.xxh3_128,
}


def supported_algorithms() -> List[str]:
    return sorted(HASH_ALGORITHMS)


def normalize_algorithm_name(name: str) -> str:
    """
    Canonical form of an algorithm name: lowercase, without dashes ("SHA-256" -> "sha256").
    Raises UnsupportedAlgorithmError for unknown names.
    """
    key = str(name or "").strip().lower().replace("-", "")
    if key not in HASH_ALGORITHMS:
        raise UnsupportedAlgorithmError(
            f"Unsupported hash algorithm: '{name}'. "
            f"Supported: {', '.join(supported_algorithms())}"
        )
    return key


def new_hash(name: str) -> HashAlgorithm:
    return HASH_ALGORITHMS[normalize_algorithm_name(name)]()


class HashEngineImpl(HashEngine):
    """
    Computes hex digests of whole files without loading them into memory.
    The blocking read loop runs in a worker thread so the event loop stays free.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = chunk_size

    async def digest(self, path: PathLike, algorithm: str = DEFAULT_ALGORITHM) -> str:
        hasher = new_hash(algorithm)
        file_path = resolve(path)
        result = await asyncio.to_thread(self._digest_file, file_path, hasher)
        logger.debug(f"{algorithm} {result} {file_path}")
        return result

    def _digest_file(self, file_path: str, hasher: HashAlgorithm) -> str:
        try:
            with open(file_path, "rb") as f:
                for chunk in iter(lambda: f.read(self.chunk_size), b""):
                    hasher.update(chunk)
        except OSError as e:
            raise translate_os_error(e, file_path) from e
        return hasher.hexdigest()
