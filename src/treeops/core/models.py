"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for file-tree operations: descriptors, fingerprint groups, stream chunks
and change events. Every record is plain data with a to_dict() for serialization.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from treeops.core.hasher import normalize_algorithm_name
from treeops.errors import InvalidArgumentError
from treeops.utils.convert_utils import ConvertUtils


# =============================
# Enums
# =============================

class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


class ChangeKind(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"


class AccessMode(str, Enum):
    READ = "read"
    WRITE = "write"
    EXECUTE = "execute"


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class PermissionBits:
    read: bool = False
    write: bool = False
    execute: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {"read": self.read, "write": self.write, "execute": self.execute}

    def __str__(self) -> str:
        return (("r" if self.read else "-")
                + ("w" if self.write else "-")
                + ("x" if self.execute else "-"))


@dataclass(frozen=True)
class Permissions:
    """Owner/group/others x read/write/execute. Special bits are not represented."""
    owner: PermissionBits = field(default_factory=PermissionBits)
    group: PermissionBits = field(default_factory=PermissionBits)
    others: PermissionBits = field(default_factory=PermissionBits)

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, bool]]) -> "Permissions":
        def bits(key: str) -> PermissionBits:
            values = data.get(key) or {}
            return PermissionBits(
                read=bool(values.get("read", False)),
                write=bool(values.get("write", False)),
                execute=bool(values.get("execute", False)),
            )
        return cls(owner=bits("owner"), group=bits("group"), others=bits("others"))

    def to_dict(self) -> Dict[str, Dict[str, bool]]:
        return {
            "owner": self.owner.to_dict(),
            "group": self.group.to_dict(),
            "others": self.others.to_dict(),
        }

    def __str__(self) -> str:
        return f"{self.owner}{self.group}{self.others}"


@dataclass(frozen=True)
class PathDescriptor:
    """
    Metadata snapshot of a single path.
    Built fresh on every stat query and never cached.
    """
    path: str
    name: str
    parent: str
    kind: EntryKind
    size: int
    mode: int
    permissions: Permissions
    created: datetime
    modified: datetime
    accessed: datetime

    @property
    def is_directory(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def octal_mode(self) -> str:
        return format(self.mode, "03o")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "parent": self.parent,
            "kind": self.kind.value,
            "size": self.size,
            "mode": self.octal_mode,
            "permissions": self.permissions.to_dict(),
            "created": self.created.isoformat(),
            "modified": self.modified.isoformat(),
            "accessed": self.accessed.isoformat(),
        }

    def __repr__(self):
        return f"<PathDescriptor path={self.path}, kind={self.kind.value}, size={self.size}>"


@dataclass(frozen=True)
class FingerprintGroup:
    """
    Files sharing one content digest.
    All members have the same digest and size; size comes from one representative.
    """
    digest: str
    size: int
    paths: Tuple[str, ...]

    @property
    def duplicate_count(self) -> int:
        return len(self.paths)

    @property
    def reclaimable_bytes(self) -> int:
        """Bytes freed by keeping a single copy."""
        return self.size * (len(self.paths) - 1)

    def to_dict(self) -> Dict[str, Any]:
        return {"digest": self.digest, "size": self.size, "paths": list(self.paths)}

    def __repr__(self):
        return f"<FingerprintGroup digest={self.digest[:12]}, size={self.size}, count={len(self.paths)}>"


@dataclass(frozen=True)
class StreamChunk:
    data: bytes
    offset: int

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    path: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "path": self.path, "timestamp": self.timestamp.isoformat()}


@dataclass
class WatchHandle:
    """Binds one watched directory to its OS watch resource."""
    path: str
    recursive: bool
    watch: Any = None
    active: bool = True

    def __repr__(self):
        return f"<WatchHandle path={self.path}, recursive={self.recursive}, active={self.active}>"


# ======================
#  Service Records
# ======================

@dataclass(frozen=True)
class FileContent:
    descriptor: PathDescriptor
    content: str

    def to_dict(self) -> Dict[str, Any]:
        data = self.descriptor.to_dict()
        data["content"] = self.content
        return data


@dataclass
class DirectoryEntry:
    descriptor: PathDescriptor
    contents: Optional[List["DirectoryEntry"]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.descriptor.to_dict()
        if self.contents is not None:
            data["contents"] = [entry.to_dict() for entry in self.contents]
        return data


@dataclass(frozen=True)
class ExtendedMetadata:
    name: str
    path: str
    extension: str
    mime_type: Optional[str]
    size: int
    created: datetime
    modified: datetime
    accessed: datetime
    is_symlink: bool
    is_hidden: bool
    parent_dir: str
    absolute_path: str
    relative_path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "extension": self.extension,
            "mime_type": self.mime_type,
            "size": self.size,
            "created": self.created.isoformat(),
            "modified": self.modified.isoformat(),
            "accessed": self.accessed.isoformat(),
            "is_symlink": self.is_symlink,
            "is_hidden": self.is_hidden,
            "parent_dir": self.parent_dir,
            "absolute_path": self.absolute_path,
            "relative_path": self.relative_path,
        }


@dataclass(frozen=True)
class FileComparison:
    size: bool = False
    content: bool = False
    permissions: bool = False
    modification_time: bool = False

    @property
    def are_identical(self) -> bool:
        return not (self.size or self.content or self.permissions or self.modification_time)

    def to_dict(self) -> Dict[str, Any]:
        differences = {
            key: True for key, value in (
                ("size", self.size),
                ("content", self.content),
                ("permissions", self.permissions),
                ("modification_time", self.modification_time),
            ) if value
        }
        return {"are_identical": self.are_identical, "differences": differences}


@dataclass(frozen=True)
class TextAnalysis:
    line_count: int
    word_count: int
    char_count: int
    encoding: str
    mime_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_count": self.line_count,
            "word_count": self.word_count,
            "char_count": self.char_count,
            "encoding": self.encoding,
            "mime_type": self.mime_type,
        }


@dataclass(frozen=True)
class SearchMatch:
    file: str
    line: int
    content: str
    match: str

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "line": self.line, "content": self.content, "match": self.match}


# ======================
#  Scan Parameters / Stats
# ======================

@dataclass
class DuplicateScanParams:
    """Parameters for one duplicate scan, validated on creation."""
    root_dir: str
    algorithm: str = "sha256"
    pattern: Optional[str] = None

    def __post_init__(self):
        if not self.root_dir:
            raise InvalidArgumentError("Root directory cannot be empty")
        self.algorithm = normalize_algorithm_name(self.algorithm)


@dataclass
class ScanStats:
    """Statistics collected during a duplicate scan."""
    total_time: float = 0.0
    groups_found: int = 0
    files_in_groups: int = 0
    duplicate_bytes: int = 0
    reclaimable_bytes: int = 0

    def print_summary(self) -> str:
        lines = [
            "📊 Duplicate Scan Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s",
            f"Groups: {self.groups_found}",
            f"Files in groups: {self.files_in_groups}",
            f"Bytes in groups: {ConvertUtils.bytes_to_human(self.duplicate_bytes)}",
            f"Reclaimable: {ConvertUtils.bytes_to_human(self.reclaimable_bytes)}",
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_time": round(self.total_time, 3),
            "groups_found": self.groups_found,
            "files_in_groups": self.files_in_groups,
            "duplicate_bytes": self.duplicate_bytes,
            "reclaimable_bytes": self.reclaimable_bytes,
        }
