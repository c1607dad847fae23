"""
Core file-tree engine: resolver, stat, walker, hasher, duplicate detector, streams, watcher.

This package contains the algorithmic and concurrency-heavy foundation of treeops:
- resolve / ensure_parent_dir: path normalization
- StatProviderImpl: OS metadata as PathDescriptor, mode <-> permission conversion
- TreeWalkerImpl: lazy, concurrent recursive file enumeration with regex filtering
- HashEngineImpl: streaming md5/sha1/sha256/sha512/xxHash digests
- DuplicateDetectorImpl: size stage + digest grouping into FingerprintGroups
- StreamPipeline + FileSink: chunked copy/transform with backpressure
- DirectoryWatcher + Subscription: watchdog notifications as ChangeEvents

Everything here is asyncio-based and free of any presentation concerns.
"""

from .paths import resolve, ensure_parent_dir
from .hasher import HashEngineImpl, HASH_ALGORITHMS, normalize_algorithm_name, supported_algorithms
from .models import (
    EntryKind, ChangeKind, AccessMode, PermissionBits, Permissions, PathDescriptor,
    FingerprintGroup, StreamChunk, ChangeEvent, WatchHandle, DuplicateScanParams, ScanStats)
from .stat_provider import StatProviderImpl, mode_to_permissions, permissions_to_mode
from .walker import TreeWalkerImpl, compile_pattern
from .duplicates import DuplicateDetectorImpl
from .streams import StreamPipeline, FileSink
from .watcher import DirectoryWatcher, Subscription, translate_event

__all__ = [
    "resolve",
    "ensure_parent_dir",
    "HashEngineImpl",
    "HASH_ALGORITHMS",
    "normalize_algorithm_name",
    "supported_algorithms",
    "EntryKind",
    "ChangeKind",
    "AccessMode",
    "PermissionBits",
    "Permissions",
    "PathDescriptor",
    "FingerprintGroup",
    "StreamChunk",
    "ChangeEvent",
    "WatchHandle",
    "DuplicateScanParams",
    "ScanStats",
    "StatProviderImpl",
    "mode_to_permissions",
    "permissions_to_mode",
    "TreeWalkerImpl",
    "compile_pattern",
    "DuplicateDetectorImpl",
    "StreamPipeline",
    "FileSink",
    "DirectoryWatcher",
    "Subscription",
    "translate_event",
]
