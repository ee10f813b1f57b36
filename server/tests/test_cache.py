"""
Tests for the tree cache (ownership and incremental reparse) and the result cache.
"""

import pytest

from fakes import FakeParser, ready_gateway
from pascallint.engine.cache import ResultCache, TreeCache, is_under
from pascallint.engine.edits import compute_edit
from pascallint.engine.errors import TreeReleasedError
from pascallint.engine.types import Issue, Position, Range

FILE = "/ws/src/Unit1.pas"


def make_issue(rule_id="no-with"):
    start = Position(0, 0, 0)
    return Issue(rule_id=rule_id, severity="error", message="m", range=Range(start, start))


class TestTreeCache:

    def setup_method(self):
        self.parser = FakeParser()
        self.cache = TreeCache(ready_gateway(self.parser))

    def test_identical_content_returns_same_tree(self):
        first = self.cache.get_or_create(FILE, "x := 1;")
        second = self.cache.get_or_create(FILE, "x := 1;")

        assert second is first
        assert self.parser.full_parses == 1
        assert self.parser.incremental_parses == 0

    def test_str_and_bytes_content_are_equal(self):
        first = self.cache.get_or_create(FILE, "x := 'é';")
        second = self.cache.get_or_create(FILE, "x := 'é';".encode("utf-8"))
        assert second is first

    def test_changed_content_releases_previous_tree(self):
        first = self.cache.get_or_create(FILE, "x := 1;")
        second = self.cache.get_or_create(FILE, "x := 2;")

        assert second is not first
        assert first.released
        assert not second.released
        assert self.parser.trees[0].deleted == 1
        assert self.parser.full_parses == 2

    def test_edit_with_newer_version_reparses_incrementally(self):
        old_text, new_text = "x := 1;", "x := 12;"
        first = self.cache.get_or_create(FILE, old_text, version=1)
        old_raw = first.raw

        second = self.cache.get_or_create(FILE, new_text, version=2, edit=compute_edit(old_text, new_text))

        assert self.parser.incremental_parses == 1
        assert self.parser.old_trees == [old_raw]
        assert len(old_raw.edits) == 1
        assert first.released
        assert self.cache.version_of(FILE) == 2
        assert self.cache.get(FILE) is second

    @pytest.mark.parametrize("new_version", [1, 0, None])
    def test_stale_or_missing_version_falls_back_to_full_parse(self, new_version):
        old_text, new_text = "x := 1;", "x := 12;"
        self.cache.get_or_create(FILE, old_text, version=1)

        self.cache.get_or_create(FILE, new_text, version=new_version, edit=compute_edit(old_text, new_text))

        assert self.parser.incremental_parses == 0
        assert self.parser.full_parses == 2

    def test_edit_without_cached_tree_is_a_full_parse(self):
        self.cache.get_or_create(FILE, "x := 12;", version=5, edit=compute_edit("x := 1;", "x := 12;"))

        assert self.parser.full_parses == 1
        assert self.cache.version_of(FILE) == 5

    def test_version_counts_up_without_explicit_versions(self):
        self.cache.get_or_create(FILE, "a")
        self.cache.get_or_create(FILE, "b")
        self.cache.get_or_create(FILE, "c")
        assert self.cache.version_of(FILE) == 2

    def test_failed_incremental_parse_evicts_entry(self):
        parser = FakeParser(fail_incremental=True)
        cache = TreeCache(ready_gateway(parser))
        first = cache.get_or_create(FILE, "x := 1;", version=1)

        with pytest.raises(RuntimeError):
            cache.get_or_create(FILE, "x := 12;", version=2, edit=compute_edit("x := 1;", "x := 12;"))

        assert FILE not in cache
        assert first.released

    def test_failed_full_parse_keeps_previous_entry(self):
        first = self.cache.get_or_create(FILE, "x := 1;")
        self.parser.fail_full = True

        with pytest.raises(RuntimeError):
            self.cache.get_or_create(FILE, "x := 2;")

        assert self.cache.get(FILE) is first
        assert not first.released

    def test_evict_releases_exactly_once(self):
        tree = self.cache.get_or_create(FILE, "x := 1;")

        assert self.cache.evict(FILE) is True
        assert self.cache.evict(FILE) is False
        assert tree.released
        assert self.parser.trees[0].deleted == 1

    def test_clear_releases_every_tree(self):
        trees = [self.cache.get_or_create(f"/ws/Unit{i}.pas", f"x := {i};") for i in range(3)]

        self.cache.clear()

        assert len(self.cache) == 0
        assert all(tree.released for tree in trees)
        assert [t.deleted for t in self.parser.trees] == [1, 1, 1]

    def test_other_files_untouched(self):
        other = self.cache.get_or_create("/ws/Other.pas", "y := 1;")
        self.cache.get_or_create(FILE, "x := 1;")
        self.cache.get_or_create(FILE, "x := 2;")
        self.cache.evict(FILE)

        assert not other.released
        assert self.cache.file_ids() == ["/ws/Other.pas"]

    def test_released_tree_refuses_reads(self):
        tree = self.cache.get_or_create(FILE, "x := 1;")
        self.cache.evict(FILE)

        with pytest.raises(TreeReleasedError):
            tree.root_node
        with pytest.raises(TreeReleasedError):
            tree.release()


class TestResultCache:

    def setup_method(self):
        self.cache = ResultCache()

    def test_hit_returns_stored_list_itself(self):
        issues = [make_issue()]
        self.cache.store(FILE, "with A do;", issues)

        assert self.cache.get(FILE, "with A do;") is issues
        assert self.cache.get(FILE, b"with A do;") is issues

    def test_changed_content_misses(self):
        self.cache.store(FILE, "with A do;", [make_issue()])

        assert self.cache.get(FILE, "with B do;") is None
        assert self.cache.peek(FILE) is not None

    def test_evict_under_workspace(self):
        for file_id in ("/ws/a.pas", "/ws/sub/b.pas", "/ws2/c.pas", "/other/d.pas"):
            self.cache.store(file_id, "x", [])

        evicted = self.cache.evict_under("/ws")

        assert sorted(evicted) == ["/ws/a.pas", "/ws/sub/b.pas"]
        assert "/ws2/c.pas" in self.cache
        assert "/other/d.pas" in self.cache

    def test_evict_and_clear(self):
        self.cache.store(FILE, "x", [])
        assert self.cache.evict(FILE) is True
        assert self.cache.evict(FILE) is False

        self.cache.store(FILE, "x", [])
        self.cache.clear()
        assert len(self.cache) == 0


class TestIsUnder:

    @pytest.mark.parametrize("file_id,workspace,expected", [
        ("/ws/a.pas", "/ws", True),
        ("/ws/a.pas", "/ws/", True),
        ("/ws/deep/a.pas", "/ws", True),
        ("/ws2/a.pas", "/ws", False),
        ("/ws", "/ws", True),
        ("/ws/a.pas", "", False),
    ])
    def test_path_prefix(self, file_id, workspace, expected):
        assert is_under(file_id, workspace) is expected
