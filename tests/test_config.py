"""
Tests for EngineConfig validation, TOML loading and engine wiring.
"""
import pytest
from treeops.config import EngineConfig, build_engine
from treeops.errors import InvalidArgumentError, PathNotFoundError, UnsupportedAlgorithmError


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.default_algorithm == "sha256"
        assert config.chunk_size == 64 * 1024
        assert config.high_water_mark == 16 * 1024
        assert config.size_prefilter is True

    def test_algorithm_normalized(self):
        assert EngineConfig(default_algorithm="SHA-1").default_algorithm == "sha1"

    def test_unknown_algorithm(self):
        with pytest.raises(UnsupportedAlgorithmError):
            EngineConfig(default_algorithm="crc32")

    @pytest.mark.parametrize("field", ["chunk_size", "high_water_mark", "walk_concurrency", "hash_concurrency"])
    @pytest.mark.parametrize("value", [0, -1, True, "64K"])
    def test_positive_integers_required(self, field, value):
        with pytest.raises(InvalidArgumentError, match=field):
            EngineConfig(**{field: value})

    def test_unbounded_event_queue_allowed(self):
        assert EngineConfig(event_queue_size=0).event_queue_size == 0

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(InvalidArgumentError, match="Unknown configuration keys: colour"):
            EngineConfig.from_mapping({"colour": "blue"})

    def test_from_human_readable(self):
        config = EngineConfig.from_human_readable(chunk_size="1M", high_water_mark="256K", walk_concurrency=4)
        assert config.chunk_size == 1024 * 1024
        assert config.high_water_mark == 256 * 1024
        assert config.walk_concurrency == 4

    def test_from_human_readable_bad_size(self):
        with pytest.raises(InvalidArgumentError):
            EngineConfig.from_human_readable(chunk_size="lots")


class TestFromToml:

    def test_reads_treeops_table(self, temp_dir):
        path = temp_dir / "treeops.toml"
        path.write_text(
            "[treeops]\n"
            'default_algorithm = "xxh3_64"\n'
            "chunk_size = 4096\n"
            "size_prefilter = false\n"
            "\n"
            "[other]\n"
            "ignored = 1\n"
        )
        config = EngineConfig.from_toml(path)
        assert config.default_algorithm == "xxh3_64"
        assert config.chunk_size == 4096
        assert config.size_prefilter is False

    def test_missing_table_gives_defaults(self, temp_dir):
        path = temp_dir / "empty.toml"
        path.write_text("")
        assert EngineConfig.from_toml(path) == EngineConfig()

    def test_invalid_toml(self, temp_dir):
        path = temp_dir / "broken.toml"
        path.write_text("[treeops\nchunk_size = ")
        with pytest.raises(InvalidArgumentError, match="Invalid TOML"):
            EngineConfig.from_toml(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(PathNotFoundError):
            EngineConfig.from_toml(temp_dir / "nope.toml")


def test_build_engine_shares_configuration():
    engine = build_engine(EngineConfig(chunk_size=1024, walk_concurrency=3, hash_concurrency=2,
                                       high_water_mark=512, event_queue_size=7, size_prefilter=False))
    assert engine.hasher.chunk_size == 1024
    assert engine.walker.max_concurrency == 3
    assert engine.detector.max_concurrency == 2
    assert engine.detector.size_prefilter is False
    assert engine.detector.walker is engine.walker
    assert engine.streams.high_water_mark == 512
    assert engine.new_watcher().event_queue_size == 7
