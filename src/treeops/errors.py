"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

errors.py
Error taxonomy shared by every engine component.

Every failure surfaced by treeops is a TreeOpsError carrying one of four kinds
(NotFound, AccessDenied, IOError, InvalidArgument). The dispatch layer maps the
kind onto whatever outer error scheme it speaks; to_dict() gives it plain data.
"""
from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    ACCESS_DENIED = "AccessDenied"
    IO_ERROR = "IOError"
    INVALID_ARGUMENT = "InvalidArgument"


class TreeOpsError(Exception):
    """Base class for all engine errors."""
    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": str(self), "path": self.path}


class PathNotFoundError(TreeOpsError):
    kind = ErrorKind.NOT_FOUND


class AccessDeniedError(TreeOpsError):
    kind = ErrorKind.ACCESS_DENIED


class FileIOError(TreeOpsError):
    """Read or write fault in the middle of an operation."""
    kind = ErrorKind.IO_ERROR


class InvalidArgumentError(TreeOpsError):
    kind = ErrorKind.INVALID_ARGUMENT


class UnsupportedAlgorithmError(InvalidArgumentError):
    pass


class InvalidPatternError(InvalidArgumentError):
    pass


class AlreadyWatchingError(InvalidArgumentError):
    pass


class NotADirectoryPathError(InvalidArgumentError, PathNotFoundError):
    """
    A path used as a directory exists but is not one.
    Catchable as either InvalidArgumentError or PathNotFoundError; reports InvalidArgument.
    """
    kind = ErrorKind.INVALID_ARGUMENT


def translate_os_error(exc: OSError, path: Optional[str] = None) -> TreeOpsError:
    """
    Convert an OSError raised by the operating system into the engine taxonomy.
    The caller is expected to `raise translate_os_error(e, path) from e`.
    """
    target = path if path is not None else getattr(exc, "filename", None)
    reason = exc.strerror or str(exc)

    if isinstance(exc, FileNotFoundError):
        return PathNotFoundError(f"Path not found: {target}", target)
    if isinstance(exc, PermissionError):
        return AccessDeniedError(f"Permission denied: {target}", target)
    if isinstance(exc, NotADirectoryError):
        return NotADirectoryPathError(f"Not a directory: {target}", target)
    if isinstance(exc, IsADirectoryError):
        return InvalidArgumentError(f"Is a directory: {target}", target)
    return FileIOError(f"I/O error on {target}: {reason}", target)
