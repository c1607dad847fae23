"""
Tests for duplicate service logic: the first path of every group is preserved,
the rest are marked for deletion.
"""
from treeops.core.models import FingerprintGroup
from treeops.services.duplicate_service import DuplicateService


def group(digest, size, *paths):
    return FingerprintGroup(digest=digest, size=size, paths=tuple(paths))


class TestKeepOnlyOnePathPerGroup:

    def test_marks_all_but_first_for_deletion(self):
        g = group("aa", 100, "/keep/me.jpg", "/delete/this1.jpg", "/delete/this2.jpg")

        to_delete = DuplicateService.keep_only_one_path_per_group([g])

        assert to_delete == ["/delete/this1.jpg", "/delete/this2.jpg"]
        # Removing them leaves one path, so no group survives
        assert DuplicateService.remove_paths_from_groups([g], to_delete) == []

    def test_groups_processed_independently(self):
        g1 = group("aa", 100, "/g1/keep", "/g1/del")
        g2 = group("bb", 200, "/g2/keep", "/g2/del1", "/g2/del2")

        to_delete = DuplicateService.keep_only_one_path_per_group([g1, g2])

        assert to_delete == ["/g1/del", "/g2/del1", "/g2/del2"]

    def test_empty_input(self):
        assert DuplicateService.keep_only_one_path_per_group([]) == []


class TestRemovePathsFromGroups:

    def test_drops_groups_below_two_members(self):
        g1 = group("aa", 10, "/a", "/b", "/c")
        g2 = group("bb", 20, "/d", "/e")

        updated = DuplicateService.remove_paths_from_groups([g1, g2], ["/a", "/e"])

        assert updated == [group("aa", 10, "/b", "/c")]

    def test_unknown_paths_change_nothing(self):
        g = group("aa", 10, "/a", "/b")
        assert DuplicateService.remove_paths_from_groups([g], ["/zzz"]) == [g]


def test_space_savings():
    g1 = group("aa", 100, "/a", "/b", "/c")
    g2 = group("bb", 1000, "/d", "/e")
    to_delete = DuplicateService.keep_only_one_path_per_group([g1, g2])
    assert DuplicateService.calculate_space_savings([g1, g2], to_delete) == 100 * 2 + 1000
