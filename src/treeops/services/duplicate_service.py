"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/duplicate_service.py
Cleanup helpers over fingerprint groups.
"""
from typing import Iterable, List

from treeops.core.models import FingerprintGroup


class DuplicateService:
    @staticmethod
    def remove_paths_from_groups(groups: List[FingerprintGroup],
                                 paths: Iterable[str]) -> List[FingerprintGroup]:
        """
        Removes the given paths from all fingerprint groups.

        Groups that contain fewer than 2 paths after removal are discarded.

        Args:
            groups (List[FingerprintGroup]): Groups to update.
            paths (Iterable[str]): Paths to remove.

        Returns:
            List[FingerprintGroup]: Updated groups, original order preserved.
        """
        removed = set(paths)
        updated_groups = []
        for group in groups:
            remaining = tuple(p for p in group.paths if p not in removed)
            if len(remaining) >= 2:
                updated_groups.append(FingerprintGroup(digest=group.digest, size=group.size, paths=remaining))
        return updated_groups

    @staticmethod
    def keep_only_one_path_per_group(groups: List[FingerprintGroup]) -> List[str]:
        """Keeps the first path of each group (encounter order); returns the rest for deletion."""
        return [p for group in groups for p in group.paths[1:]]

    @staticmethod
    def calculate_space_savings(groups: List[FingerprintGroup], paths_to_delete: Iterable[str]) -> int:
        """Total bytes freed by deleting the given paths."""
        delete_set = set(paths_to_delete)
        return sum(group.size for group in groups for p in group.paths if p in delete_set)
