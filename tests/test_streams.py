"""
Tests for StreamPipeline and FileSink: byte-exact copies, bounded buffering,
line splitting and error propagation.
"""
import asyncio
import hashlib
import os

import pytest
from treeops.core.models import StreamChunk
from treeops.core.streams import FileSink, StreamPipeline
from treeops.errors import FileIOError, InvalidArgumentError, PathNotFoundError


class TestCopy:

    @pytest.mark.asyncio
    async def test_copy_one_mebibyte_is_byte_identical(self, temp_dir):
        content = os.urandom(1024 * 1024)
        source = temp_dir / "source.bin"
        source.write_bytes(content)
        dest = temp_dir / "nested" / "dir" / "dest.bin"

        copied = await StreamPipeline().copy(source, dest)

        assert copied == len(content)
        assert hashlib.sha256(dest.read_bytes()).digest() == hashlib.sha256(content).digest()

    @pytest.mark.asyncio
    async def test_copy_empty_file(self, temp_dir):
        source = temp_dir / "empty"
        source.write_bytes(b"")
        assert await StreamPipeline().copy(source, temp_dir / "out") == 0
        assert (temp_dir / "out").read_bytes() == b""

    @pytest.mark.asyncio
    async def test_copy_missing_source_creates_nothing(self, temp_dir):
        with pytest.raises(PathNotFoundError):
            await StreamPipeline().copy(temp_dir / "missing", temp_dir / "out" / "dest")
        assert not (temp_dir / "out").exists()


class TestReadChunks:

    @pytest.mark.asyncio
    async def test_chunks_cover_file_in_order(self, temp_dir):
        content = bytes(range(256)) * 10
        path = temp_dir / "data"
        path.write_bytes(content)

        chunks = [c async for c in StreamPipeline().read_chunks(path, chunk_size=1000)]

        assert [len(c) for c in chunks] == [1000, 1000, 560]
        assert [c.offset for c in chunks] == [0, 1000, 2000]
        assert b"".join(c.data for c in chunks) == content

    @pytest.mark.asyncio
    async def test_byte_range(self, temp_dir):
        path = temp_dir / "data"
        path.write_bytes(b"0123456789")

        chunks = [c async for c in StreamPipeline().read_chunks(path, chunk_size=3, start=2, stop=8)]

        assert b"".join(c.data for c in chunks) == b"234567"
        assert chunks[0].offset == 2

    def test_invalid_chunk_size_rejected_eagerly(self, temp_dir):
        with pytest.raises(InvalidArgumentError):
            StreamPipeline().read_chunks(temp_dir / "x", chunk_size=0)

    def test_invalid_range_rejected_eagerly(self, temp_dir):
        with pytest.raises(InvalidArgumentError):
            StreamPipeline().read_chunks(temp_dir / "x", start=5, stop=2)


class TestWriteChunks:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("high_water_mark", [1, 1024, 16 * 1024, 4 * 1024 * 1024])
    async def test_thousand_chunks_in_order(self, temp_dir, high_water_mark):
        chunks = [bytes([i % 256]) * 1024 for i in range(1000)]
        path = temp_dir / "out.bin"

        written = await StreamPipeline(high_water_mark=high_water_mark).write_chunks(path, chunks)

        assert written == 1000 * 1024
        assert path.read_bytes() == b"".join(chunks)

    @pytest.mark.asyncio
    async def test_pipeline_keeps_sink_buffer_bounded(self, temp_dir, monkeypatch):
        high_water_mark, chunk = 4096, 1024
        sinks = []
        real_open = FileSink.open

        async def recording_open(path, high_water_mark=high_water_mark, append=False):
            sink = await real_open(path, high_water_mark, append)
            sinks.append(sink)
            return sink

        monkeypatch.setattr(FileSink, "open", recording_open)

        written = await StreamPipeline(high_water_mark=high_water_mark).write_chunks(
            temp_dir / "out.bin", (b"x" * chunk for _ in range(500))
        )

        assert written == 500 * chunk
        assert len(sinks) == 1
        assert sinks[0].high_water_mark == high_water_mark
        assert sinks[0].peak_buffered <= high_water_mark + chunk

    @pytest.mark.asyncio
    async def test_accepts_async_source_and_mixed_chunk_types(self, temp_dir):
        async def source():
            yield b"ab"
            yield "cd"
            yield bytearray(b"ef")
            yield StreamChunk(data=b"gh", offset=6)

        path = temp_dir / "out.txt"
        assert await StreamPipeline().write_chunks(path, source()) == 8
        assert path.read_bytes() == b"abcdefgh"

    @pytest.mark.asyncio
    async def test_unsupported_chunk_type(self, temp_dir):
        with pytest.raises(InvalidArgumentError):
            await StreamPipeline().write_chunks(temp_dir / "out", [b"ok", 42])


class TestFileSink:

    @pytest.mark.asyncio
    async def test_write_reports_high_water_mark(self, temp_dir):
        sink = await FileSink.open(temp_dir / "out", high_water_mark=10)
        async with sink:
            assert sink.write(b"12345") is True
            assert sink.write(b"67890") is False
            await sink.drain()
            assert sink.buffered < sink.high_water_mark
        assert sink.bytes_written == 10
        assert (temp_dir / "out").read_bytes() == b"1234567890"

    @pytest.mark.asyncio
    async def test_peak_buffer_bounded_when_producer_drains(self, temp_dir):
        high_water_mark, chunk = 4096, 1024
        sink = await FileSink.open(temp_dir / "out", high_water_mark=high_water_mark)
        async with sink:
            for _ in range(500):
                if not sink.write(b"x" * chunk):
                    await sink.drain()
        assert sink.peak_buffered <= high_water_mark + chunk
        assert sink.bytes_written == 500 * chunk

    @pytest.mark.asyncio
    async def test_write_after_close(self, temp_dir):
        sink = await FileSink.open(temp_dir / "out")
        await sink.close()
        with pytest.raises(InvalidArgumentError):
            sink.write(b"late")

    @pytest.mark.asyncio
    async def test_append_mode(self, temp_dir):
        path = temp_dir / "log"
        path.write_bytes(b"first\n")
        async with await FileSink.open(path, append=True) as sink:
            sink.write(b"second\n")
        assert path.read_bytes() == b"first\nsecond\n"


class TestTransformLines:

    @pytest.mark.asyncio
    async def test_lines_with_trailing_newline(self, temp_dir):
        path = temp_dir / "in.txt"
        path.write_text("alpha\nbeta\ngamma\n", encoding="utf-8")

        result = [r async for r in StreamPipeline().transform_lines(path, str.upper)]
        assert result == ["ALPHA", "BETA", "GAMMA"]

    @pytest.mark.asyncio
    async def test_final_line_without_newline(self, temp_dir):
        path = temp_dir / "in.txt"
        path.write_text("one\ntwo", encoding="utf-8")

        result = [r async for r in StreamPipeline().transform_lines(path, len)]
        assert result == [3, 3]

    @pytest.mark.asyncio
    async def test_lines_spanning_chunks_and_multibyte_characters(self, temp_dir):
        lines = [f"línea {i} ß ü" for i in range(200)]
        path = temp_dir / "in.txt"
        path.write_text("\n".join(lines), encoding="utf-8")

        pipeline = StreamPipeline(chunk_size=7)
        result = [r async for r in pipeline.transform_lines(path, lambda s: s)]
        assert result == lines

    @pytest.mark.asyncio
    async def test_line_fn_errors_propagate(self, temp_dir):
        path = temp_dir / "in.txt"
        path.write_text("1\nx\n3\n")

        with pytest.raises(ValueError):
            _ = [r async for r in StreamPipeline().transform_lines(path, int)]

    @pytest.mark.asyncio
    async def test_invalid_bytes_are_io_errors(self, temp_dir):
        path = temp_dir / "in.bin"
        path.write_bytes(b"ok\n\xff\xfe\n")

        with pytest.raises(FileIOError):
            _ = [r async for r in StreamPipeline().transform_lines(path, str)]

    def test_unknown_encoding(self, temp_dir):
        with pytest.raises(InvalidArgumentError):
            StreamPipeline().transform_lines(temp_dir / "x", str, encoding="no-such-codec")


class TestPipeThrough:

    @pytest.mark.asyncio
    async def test_transform_applied_to_every_chunk(self, temp_dir):
        source = temp_dir / "in.txt"
        source.write_bytes(b"hello world " * 1000)
        dest = temp_dir / "out.txt"

        written = await StreamPipeline(chunk_size=100).pipe_through(source, dest, bytes.upper)

        assert written == 12000
        assert dest.read_bytes() == b"HELLO WORLD " * 1000

    @pytest.mark.asyncio
    async def test_async_transform(self, temp_dir):
        source = temp_dir / "in.txt"
        source.write_bytes(b"abc")

        async def reverse(data: bytes) -> bytes:
            await asyncio.sleep(0)
            return data[::-1]

        await StreamPipeline().pipe_through(source, temp_dir / "out", reverse)
        assert (temp_dir / "out").read_bytes() == b"cba"

    @pytest.mark.asyncio
    async def test_missing_source(self, temp_dir):
        with pytest.raises(PathNotFoundError):
            await StreamPipeline().pipe_through(temp_dir / "missing", temp_dir / "out", bytes.upper)
        assert not (temp_dir / "out").exists()

    @pytest.mark.asyncio
    async def test_transform_fault_propagates(self, temp_dir):
        source = temp_dir / "in.txt"
        source.write_bytes(b"data")

        def broken(_data):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await StreamPipeline().pipe_through(source, temp_dir / "out", broken)

    @pytest.mark.asyncio
    async def test_transform_fault_leaves_partial_destination(self, temp_dir):
        source = temp_dir / "in.txt"
        source.write_bytes(b"a" * 10 + b"b" * 10)
        dest = temp_dir / "out"

        def fail_on_second_chunk(data):
            if data.startswith(b"b"):
                raise RuntimeError("boom")
            return data

        with pytest.raises(RuntimeError, match="boom"):
            await StreamPipeline(chunk_size=10).pipe_through(source, dest, fail_on_second_chunk)

        assert dest.read_bytes() == b"a" * 10
