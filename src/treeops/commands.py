"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

Unified command orchestrator for duplicate scans.
This is the single entry point for the scan workflow, used by the CLI and library callers alike.
"""
import time
from typing import Callable, List, Optional, Tuple

from treeops.config import Engine, build_engine
from treeops.core.models import DuplicateScanParams, FingerprintGroup, ScanStats


class DuplicateScanCommand:
    """
    Orchestrates the duplicate scan workflow:
    1. Walk the root directory (optionally filtered by a basename pattern)
    2. Group candidates by size, then by content digest
    3. Collect statistics about the result

    Usage:
        params = DuplicateScanParams(root_dir="~/Downloads", algorithm="xxh3_64")
        command = DuplicateScanCommand()
        groups, stats = await command.execute(params, progress_callback=cli_progress_printer)
    """

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine or build_engine()
        self._groups: List[FingerprintGroup] = []

    async def execute(
            self,
            params: DuplicateScanParams,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
    ) -> Tuple[List[FingerprintGroup], ScanStats]:
        """
        Execute a duplicate scan with given parameters.

        Args:
            params: Validated scan parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None

        Returns:
            Tuple of (fingerprint_groups, statistics)

        Raises:
            TreeOpsError: If the root cannot be walked or a file cannot be hashed
        """
        start = time.perf_counter()
        groups = await self._engine.detector.find_duplicates(
            params.root_dir,
            algorithm=params.algorithm,
            pattern=params.pattern,
            progress_callback=progress_callback,
        )
        self._groups = groups

        stats = ScanStats(
            total_time=time.perf_counter() - start,
            groups_found=len(groups),
            files_in_groups=sum(len(g.paths) for g in groups),
            duplicate_bytes=sum(g.size * len(g.paths) for g in groups),
            reclaimable_bytes=sum(g.reclaimable_bytes for g in groups),
        )
        return groups, stats

    def get_groups(self) -> List[FingerprintGroup]:
        """Get groups found by the last execution."""
        return self._groups.copy()
