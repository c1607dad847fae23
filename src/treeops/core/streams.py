"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/streams.py
Chunked stream transfer with explicit backpressure.

FileSink follows the asyncio.StreamWriter contract: write() only queues bytes and
reports whether the buffer is under its high-water mark; drain() suspends the caller
until a background flusher has written enough to bring it back under. Producers that
honour write()/drain() keep peak memory bounded by high_water_mark + one chunk,
whatever the total volume.
"""

import asyncio
import codecs
import inspect
import logging
import os
from collections import deque
from typing import (
    Any, AsyncIterable, AsyncIterator, Awaitable, BinaryIO, Callable, Deque, Iterable,
    Optional, Union,
)

from treeops.core.models import StreamChunk
from treeops.core.paths import PathLike, ensure_parent_dir, resolve
from treeops.errors import (
    FileIOError, InvalidArgumentError, PathNotFoundError, TreeOpsError, translate_os_error,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_HIGH_WATER_MARK = 16 * 1024

ChunkLike = Union[bytes, bytearray, memoryview, str, StreamChunk]
ChunkSource = Union[AsyncIterable[ChunkLike], Iterable[ChunkLike]]
TransformFn = Callable[[bytes], Union[ChunkLike, Awaitable[ChunkLike]]]


def _as_bytes(chunk: ChunkLike) -> bytes:
    if isinstance(chunk, StreamChunk):
        return chunk.data
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return bytes(chunk)
    raise InvalidArgumentError(f"Unsupported chunk type: {type(chunk).__name__}")


async def _iterate(source: ChunkSource) -> AsyncIterator[ChunkLike]:
    """Accept both async and plain iterables as chunk sources."""
    if hasattr(source, "__aiter__"):
        async for item in source:
            yield item
    else:
        for item in source:
            yield item


def _validate_size(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")
    return value


async def _open(path: str, mode: str) -> BinaryIO:
    try:
        return await asyncio.to_thread(open, path, mode)
    except OSError as e:
        raise translate_os_error(e, path) from e


async def _close(handle: BinaryIO, path: str) -> None:
    try:
        await asyncio.to_thread(handle.close)
    except OSError as e:
        raise translate_os_error(e, path) from e


class FileSink:
    """
    Buffered asynchronous writer for one destination file.

    Attributes:
        high_water_mark: Buffered byte count at which write() asks the producer to drain
        buffered: Bytes accepted by write() but not yet on disk
        peak_buffered: Largest value `buffered` has reached
    """

    def __init__(self, handle: BinaryIO, path: str, high_water_mark: int = DEFAULT_HIGH_WATER_MARK):
        self._handle = handle
        self.path = path
        self.high_water_mark = _validate_size("high_water_mark", high_water_mark)
        self.buffered = 0
        self.peak_buffered = 0
        self.bytes_written = 0
        self._pending: Deque[bytes] = deque()
        self._flusher: Optional[asyncio.Task] = None
        self._drained = asyncio.Event()
        self._drained.set()
        self._error: Optional[TreeOpsError] = None
        self._closed = False

    @classmethod
    async def open(cls, path: PathLike, high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
                   append: bool = False) -> "FileSink":
        """Create parent directories and open `path` for writing."""
        abs_path = resolve(path)
        _validate_size("high_water_mark", high_water_mark)
        try:
            await ensure_parent_dir(abs_path)
        except OSError as e:
            raise translate_os_error(e, os.path.dirname(abs_path)) from e
        handle = await _open(abs_path, "ab" if append else "wb")
        return cls(handle, abs_path, high_water_mark)

    @property
    def needs_drain(self) -> bool:
        return self.buffered >= self.high_water_mark

    def write(self, data: bytes) -> bool:
        """
        Queue `data` for writing. Never blocks.
        Returns False once the buffer has reached the high-water mark; the caller
        must then `await drain()` before writing more.
        """
        self._raise_if_failed()
        if self._closed:
            raise InvalidArgumentError(f"Write after close: {self.path}", self.path)
        if not data:
            return not self.needs_drain

        self._pending.append(data)
        self.buffered += len(data)
        self.peak_buffered = max(self.peak_buffered, self.buffered)
        if self.needs_drain:
            self._drained.clear()
        if self._flusher is None or self._flusher.done():
            self._flusher = asyncio.create_task(self._flush())
        return not self.needs_drain

    async def drain(self) -> None:
        """Suspend until the buffer is below the high-water mark."""
        if self.needs_drain:
            await self._drained.wait()
        self._raise_if_failed()

    async def close(self) -> None:
        """Flush everything still buffered, then close the file."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._flusher is not None:
                await self._flusher
        finally:
            await _close(self._handle, self.path)
        self._raise_if_failed()

    async def _flush(self) -> None:
        while self._pending:
            data = self._pending[0]
            try:
                await asyncio.to_thread(self._handle.write, data)
            except OSError as e:
                self._error = translate_os_error(e, self.path)
                self._pending.clear()
                self.buffered = 0
                self._drained.set()
                return
            self._pending.popleft()
            self.buffered -= len(data)
            self.bytes_written += len(data)
            if not self.needs_drain:
                self._drained.set()

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error

    async def __aenter__(self) -> "FileSink":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class StreamPipeline:
    """
    Chunked copy/transform/line-split operations.
    Every operation is independently invokable and holds at most a bounded amount
    of file data in memory.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE,
                 high_water_mark: int = DEFAULT_HIGH_WATER_MARK):
        self.chunk_size = _validate_size("chunk_size", chunk_size)
        self.high_water_mark = _validate_size("high_water_mark", high_water_mark)

    async def copy(self, source: PathLike, dest: PathLike) -> int:
        """
        Stream `source` into `dest`, creating missing parents of `dest`.
        Returns the number of bytes copied. A failure mid-way leaves `dest` partial.
        """
        src_path = resolve(source)
        reader = await _open(src_path, "rb")
        try:
            sink = await FileSink.open(dest, self.high_water_mark)
            async with sink:
                await self._pump(self._read_handle(reader, src_path, self.chunk_size), sink)
        finally:
            await _close(reader, src_path)
        logger.debug(f"Copied {sink.bytes_written} bytes {src_path} -> {sink.path}")
        return sink.bytes_written

    def read_chunks(self, path: PathLike, chunk_size: Optional[int] = None,
                    start: int = 0, stop: Optional[int] = None) -> AsyncIterator[StreamChunk]:
        """
        Lazy, non-restartable sequence of chunks covering bytes [start, stop).
        Every chunk has `chunk_size` bytes except possibly the last one.
        """
        size = _validate_size("chunk_size", chunk_size if chunk_size is not None else self.chunk_size)
        if start < 0 or (stop is not None and stop < start):
            raise InvalidArgumentError(f"Invalid byte range: start={start}, stop={stop}")
        return self._read_file(resolve(path), size, start, stop)

    async def write_chunks(self, path: PathLike, chunks: ChunkSource) -> int:
        """
        Write every chunk of `chunks` to `path` in order, honouring backpressure.
        Returns the number of bytes written.
        """
        sink = await FileSink.open(path, self.high_water_mark)
        async with sink:
            await self._pump(_iterate(chunks), sink)
        logger.debug(f"Wrote {sink.bytes_written} bytes to {sink.path} "
                     f"(peak buffer {sink.peak_buffered} bytes)")
        return sink.bytes_written

    def transform_lines(self, path: PathLike, line_fn: Callable[[str], Any],
                        encoding: str = "utf-8") -> AsyncIterator[Any]:
        """
        Yield line_fn(line) for every line of the file, lazily.
        Lines are split on '\\n'; a final line without a trailing newline still counts.
        Exceptions raised by line_fn propagate unchanged.
        """
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise InvalidArgumentError(f"Unknown encoding: {encoding}") from e
        return self._transform_lines(resolve(path), line_fn, encoding)

    async def pipe_through(self, source: PathLike, dest: PathLike, transform_fn: TransformFn) -> int:
        """
        Read `source`, pass each chunk through `transform_fn`, write results to `dest`.
        A fault in transform_fn aborts the operation and propagates; `dest` is left partial.
        """
        async def transformed() -> AsyncIterator[ChunkLike]:
            async for chunk in self.read_chunks(source):
                result = transform_fn(chunk.data)
                if inspect.isawaitable(result):
                    result = await result
                yield result

        src_path = resolve(source)
        if not await asyncio.to_thread(os.path.exists, src_path):
            raise PathNotFoundError(f"Path not found: {src_path}", src_path)
        return await self.write_chunks(dest, transformed())

    # ---- internals ----

    @staticmethod
    async def _pump(chunks: AsyncIterator[ChunkLike], sink: FileSink) -> None:
        async for chunk in chunks:
            if not sink.write(_as_bytes(chunk)):
                await sink.drain()

    @staticmethod
    async def _read_handle(handle: BinaryIO, path: str, chunk_size: int,
                           start: int = 0, stop: Optional[int] = None) -> AsyncIterator[StreamChunk]:
        offset = start
        try:
            if start:
                await asyncio.to_thread(handle.seek, start)
            while stop is None or offset < stop:
                want = chunk_size if stop is None else min(chunk_size, stop - offset)
                data = await asyncio.to_thread(handle.read, want)
                if not data:
                    break
                yield StreamChunk(data=data, offset=offset)
                offset += len(data)
        except OSError as e:
            raise translate_os_error(e, path) from e

    async def _read_file(self, path: str, chunk_size: int, start: int,
                         stop: Optional[int]) -> AsyncIterator[StreamChunk]:
        handle = await _open(path, "rb")
        try:
            async for chunk in self._read_handle(handle, path, chunk_size, start, stop):
                yield chunk
        finally:
            await _close(handle, path)

    async def _transform_lines(self, path: str, line_fn: Callable[[str], Any],
                               encoding: str) -> AsyncIterator[Any]:
        decoder = codecs.getincrementaldecoder(encoding)()
        remainder = ""
        async for chunk in self._read_file(path, self.chunk_size, 0, None):
            try:
                text = decoder.decode(chunk.data)
            except UnicodeDecodeError as e:
                raise FileIOError(f"Cannot decode {path} as {encoding}: {e}", path) from e
            lines = (remainder + text).split("\n")
            remainder = lines.pop()
            for line in lines:
                yield line_fn(line)
        try:
            remainder += decoder.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise FileIOError(f"Cannot decode {path} as {encoding}: {e}", path) from e
        if remainder:
            yield line_fn(remainder)
