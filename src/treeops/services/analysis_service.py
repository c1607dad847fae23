"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/analysis_service.py
Text statistics with encoding detection, and line-oriented regex search
over one file or a whole tree.
"""
import asyncio
import logging
import mimetypes
import os
import re
from pathlib import Path
from typing import List, Pattern, Union

import chardet

from treeops.core.models import EntryKind, SearchMatch, TextAnalysis
from treeops.core.paths import PathLike, resolve
from treeops.core.stat_provider import StatProviderImpl
from treeops.core.walker import TreeWalkerImpl, compile_pattern
from treeops.errors import (
    AccessDeniedError,
    FileIOError,
    InvalidArgumentError,
    InvalidPatternError,
    NotADirectoryPathError,
    PathNotFoundError,
    translate_os_error,
)

logger = logging.getLogger(__name__)

ENCODING_SAMPLE_SIZE = 64 * 1024
MIN_ENCODING_CONFIDENCE = 0.5
DEFAULT_MIME_TYPE = "application/octet-stream"

_stat_provider = StatProviderImpl()


def detect_encoding(raw: bytes) -> str:
    """Best chardet guess for a byte sample; 'unknown' when it has no answer."""
    if not raw:
        return "unknown"
    result = chardet.detect(raw[:ENCODING_SAMPLE_SIZE])
    encoding = result.get("encoding")
    if not encoding:
        return "unknown"
    if result.get("confidence", 0.0) < MIN_ENCODING_CONFIDENCE:
        logger.debug(f"Low confidence encoding guess {encoding} ({result.get('confidence')})")
    return encoding.lower()


def _list_files(directory: str) -> List[str]:
    with os.scandir(directory) as it:
        return sorted(entry.path for entry in it if entry.is_file())


async def _read_bytes(path: str) -> bytes:
    descriptor = await _stat_provider.stat(path)
    if descriptor.kind == EntryKind.DIRECTORY:
        raise InvalidArgumentError(f"Cannot read directory as file: {path}", path)
    try:
        return await asyncio.to_thread(Path(path).read_bytes)
    except OSError as e:
        raise translate_os_error(e, path) from e


def _as_pattern(pattern: Union[str, Pattern[str]]) -> Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    compiled = compile_pattern(pattern)
    if compiled is None:
        raise InvalidPatternError("Search pattern cannot be empty")
    return compiled


def _match_lines(path: str, text: str, pattern: Pattern[str]) -> List[SearchMatch]:
    matches = []
    for number, line in enumerate(text.split("\n"), start=1):
        found = pattern.search(line)
        if found:
            matches.append(SearchMatch(file=path, line=number, content=line, match=found.group(0)))
    return matches


class AnalysisService:

    @staticmethod
    async def analyze_text_file(file_path: PathLike) -> TextAnalysis:
        """
        Count lines, words and characters of a UTF-8 text file.
        Lines are the pieces between newline characters, so a trailing newline
        counts as one more (empty) line.
        """
        path = resolve(file_path)
        raw = await _read_bytes(path)
        content = raw.decode("utf-8", errors="replace")
        encoding = await asyncio.to_thread(detect_encoding, raw)
        mime_type, _ = mimetypes.guess_type(path)
        return TextAnalysis(
            line_count=len(content.split("\n")),
            word_count=len(content.split()),
            char_count=len(content),
            encoding=encoding,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
        )

    @staticmethod
    async def search_in_file(file_path: PathLike,
                             pattern: Union[str, Pattern[str]]) -> List[SearchMatch]:
        """Return every line containing a match, with 1-based line numbers."""
        compiled = _as_pattern(pattern)
        path = resolve(file_path)
        raw = await _read_bytes(path)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FileIOError(f"Not a UTF-8 text file: {path}", path) from e
        return _match_lines(path, text, compiled)

    @staticmethod
    async def search_in_files(root: PathLike, pattern: Union[str, Pattern[str]],
                              recursive: bool = True) -> List[SearchMatch]:
        """
        Search every file below `root`. Files that cannot be read or are not
        UTF-8 text are skipped; problems with `root` itself are raised.
        """
        compiled = _as_pattern(pattern)
        root_path = resolve(root)

        if recursive:
            files = [p async for p in TreeWalkerImpl().walk(root_path)]
        else:
            descriptor = await _stat_provider.stat(root_path)
            if descriptor.kind != EntryKind.DIRECTORY:
                raise NotADirectoryPathError(f"Not a directory: {root_path}", root_path)
            try:
                files = await asyncio.to_thread(_list_files, root_path)
            except OSError as e:
                raise translate_os_error(e, root_path) from e

        results: List[SearchMatch] = []
        for path in files:
            try:
                results.extend(await AnalysisService.search_in_file(path, compiled))
            except (FileIOError, AccessDeniedError, PathNotFoundError) as e:
                logger.debug(f"Skipping {path}: {e}")
        return results
