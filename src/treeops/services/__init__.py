"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

Filesystem services built on the core engine.
"""
from .analysis_service import AnalysisService
from .archive_service import ArchiveService
from .directory_service import DirectoryService
from .duplicate_service import DuplicateService
from .file_service import FileService
from .metadata_service import MetadataService
from .permission_service import PermissionService

__all__ = [
    "AnalysisService",
    "ArchiveService",
    "DirectoryService",
    "DuplicateService",
    "FileService",
    "MetadataService",
    "PermissionService",
]
