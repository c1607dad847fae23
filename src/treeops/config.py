"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

config.py
Engine configuration with built-in validation, and the factory that wires the
core components from it. Interface-agnostic: used by the CLI and by library callers.
"""
import tomllib
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from treeops.core.duplicates import DEFAULT_HASH_CONCURRENCY, DuplicateDetectorImpl
from treeops.core.hasher import DEFAULT_ALGORITHM, HashEngineImpl, normalize_algorithm_name
from treeops.core.paths import PathLike, resolve
from treeops.core.stat_provider import StatProviderImpl
from treeops.core.streams import DEFAULT_CHUNK_SIZE, DEFAULT_HIGH_WATER_MARK, StreamPipeline
from treeops.core.walker import DEFAULT_MAX_CONCURRENCY, TreeWalkerImpl
from treeops.core.watcher import DEFAULT_EVENT_QUEUE_SIZE, DirectoryWatcher
from treeops.errors import InvalidArgumentError, translate_os_error
from treeops.utils.convert_utils import ConvertUtils

CONFIG_TABLE = "treeops"


@dataclass
class EngineConfig:
    """Tunables for the engine, validated immediately after creation."""
    default_algorithm: str = DEFAULT_ALGORITHM
    chunk_size: int = DEFAULT_CHUNK_SIZE
    high_water_mark: int = DEFAULT_HIGH_WATER_MARK
    walk_concurrency: int = DEFAULT_MAX_CONCURRENCY
    hash_concurrency: int = DEFAULT_HASH_CONCURRENCY
    size_prefilter: bool = True
    event_queue_size: int = DEFAULT_EVENT_QUEUE_SIZE

    def __post_init__(self):
        self.default_algorithm = normalize_algorithm_name(self.default_algorithm)

        for name in ("chunk_size", "high_water_mark", "walk_concurrency", "hash_concurrency"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")

        if not isinstance(self.event_queue_size, int) or self.event_queue_size < 0:
            raise InvalidArgumentError(
                f"event_queue_size must be a non-negative integer, got {self.event_queue_size!r}"
            )

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidArgumentError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_toml(cls, path: PathLike) -> "EngineConfig":
        """
        Load configuration from the [treeops] table of a TOML file.
        A file without that table yields the defaults.
        """
        config_path = resolve(path)
        try:
            with open(config_path, "rb") as f:
                document = tomllib.load(f)
        except OSError as e:
            raise translate_os_error(e, config_path) from e
        except tomllib.TOMLDecodeError as e:
            raise InvalidArgumentError(f"Invalid TOML in {config_path}: {e}", config_path) from e
        return cls.from_mapping(document.get(CONFIG_TABLE, {}))

    @staticmethod
    def from_human_readable(
            chunk_size: str = "64K",
            high_water_mark: str = "16K",
            default_algorithm: str = DEFAULT_ALGORITHM,
            **overrides: Any,
    ) -> "EngineConfig":
        """
        Factory method to create a config from human-readable sizes.
        Useful for CLI argument parsing.
        """
        try:
            chunk = ConvertUtils.human_to_bytes(chunk_size)
            hwm = ConvertUtils.human_to_bytes(high_water_mark)
        except ValueError as e:
            raise InvalidArgumentError(str(e)) from e
        return EngineConfig(
            default_algorithm=default_algorithm,
            chunk_size=chunk,
            high_water_mark=hwm,
            **overrides,
        )


@dataclass
class Engine:
    """Wired engine components sharing one configuration."""
    config: EngineConfig
    stat: StatProviderImpl
    walker: TreeWalkerImpl
    hasher: HashEngineImpl
    detector: DuplicateDetectorImpl
    streams: StreamPipeline

    def new_watcher(self) -> DirectoryWatcher:
        """Watchers own OS resources, so every caller gets (and closes) its own."""
        return DirectoryWatcher(event_queue_size=self.config.event_queue_size)


def build_engine(config: Optional[EngineConfig] = None) -> Engine:
    config = config or EngineConfig()
    walker = TreeWalkerImpl(max_concurrency=config.walk_concurrency)
    hasher = HashEngineImpl(chunk_size=config.chunk_size)
    return Engine(
        config=config,
        stat=StatProviderImpl(),
        walker=walker,
        hasher=hasher,
        detector=DuplicateDetectorImpl(
            walker=walker,
            hasher=hasher,
            size_prefilter=config.size_prefilter,
            max_concurrency=config.hash_concurrency,
        ),
        streams=StreamPipeline(chunk_size=config.chunk_size, high_water_mark=config.high_water_mark),
    )
