"""
treeops: async file-tree operations engine.

Core features:
- Lazy, concurrent recursive walks with regex filtering
- Streaming content hashes (md5, sha1, sha256, sha512, xxHash) and duplicate detection
- Chunked copy / transform pipelines with backpressure
- Directory watching via watchdog with bounded per-subscriber queues
- Safe deletion to system trash (via send2trash)
- CLI interface (`treeops`) for headless usage
"""
from importlib.metadata import PackageNotFoundError, version as _version

try:
    __version__ = _version("treeops")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API, only what users should import directly
from treeops.commands import DuplicateScanCommand
from treeops.config import Engine, EngineConfig, build_engine
from treeops.core import (
    ChangeEvent,
    ChangeKind,
    DirectoryWatcher,
    DuplicateDetectorImpl,
    DuplicateScanParams,
    EntryKind,
    FingerprintGroup,
    HashEngineImpl,
    PathDescriptor,
    Permissions,
    ScanStats,
    StatProviderImpl,
    StreamPipeline,
    TreeWalkerImpl,
    resolve,
)
from treeops.errors import (
    AccessDeniedError,
    ErrorKind,
    FileIOError,
    InvalidArgumentError,
    PathNotFoundError,
    TreeOpsError,
)
from treeops.services import DuplicateService, FileService
from treeops.utils.convert_utils import ConvertUtils

__all__ = [
    "DuplicateScanCommand",
    "Engine",
    "EngineConfig",
    "build_engine",
    "ChangeEvent",
    "ChangeKind",
    "DirectoryWatcher",
    "DuplicateDetectorImpl",
    "DuplicateScanParams",
    "EntryKind",
    "FingerprintGroup",
    "HashEngineImpl",
    "PathDescriptor",
    "Permissions",
    "ScanStats",
    "StatProviderImpl",
    "StreamPipeline",
    "TreeWalkerImpl",
    "resolve",
    "AccessDeniedError",
    "ErrorKind",
    "FileIOError",
    "InvalidArgumentError",
    "PathNotFoundError",
    "TreeOpsError",
    "DuplicateService",
    "FileService",
    "ConvertUtils",
    "__version__",
]
