"""Tests for line diffs and per-commit diff reconstruction."""

import pytest

from trackit import (
    Commit,
    CommitDiffer,
    CommitGraph,
    DiffSegment,
    NotFound,
    StagingEntry,
    diff_lines,
    fingerprint,
    reconstruct,
)
from trackit.diff import (
    ADDED,
    FIRST_COMMIT,
    MODIFIED,
    NEW_FILE,
    REMOVED,
    UNCHANGED,
)
from trackit.kv.memory import Memory


def make_differ(clock=None) -> CommitDiffer:
    graph = CommitGraph(Memory(), clock=clock)
    graph.initialize()
    graph.index.initialize()
    return CommitDiffer(graph)


def stage(differ: CommitDiffer, path: str, content: bytes) -> str:
    fp = differ.graph.objects.put(content)
    differ.graph.index.stage(path, fp)
    return fp


class TestDiffLines:
    def test_appended_line(self):
        assert diff_lines("hello\n", "hello\nworld\n") == (
            DiffSegment(UNCHANGED, "hello\n"),
            DiffSegment(ADDED, "world\n"),
        )

    def test_removed_line(self):
        assert diff_lines("a\nb\nc\n", "a\nc\n") == (
            DiffSegment(UNCHANGED, "a\n"),
            DiffSegment(REMOVED, "b\n"),
            DiffSegment(UNCHANGED, "c\n"),
        )

    def test_replaced_line_removes_before_adding(self):
        assert diff_lines("a\nold\nc\n", "a\nnew\nc\n") == (
            DiffSegment(UNCHANGED, "a\n"),
            DiffSegment(REMOVED, "old\n"),
            DiffSegment(ADDED, "new\n"),
            DiffSegment(UNCHANGED, "c\n"),
        )

    def test_identical(self):
        assert diff_lines("same\n", "same\n") == (DiffSegment(UNCHANGED, "same\n"),)

    def test_both_empty(self):
        assert diff_lines("", "") == ()

    def test_from_empty(self):
        assert diff_lines("", "new\n") == (DiffSegment(ADDED, "new\n"),)

    def test_to_empty(self):
        assert diff_lines("gone\n", "") == (DiffSegment(REMOVED, "gone\n"),)

    def test_contiguous_runs_are_merged(self):
        segments = diff_lines("a\n", "a\nb\nc\nd\n")
        assert segments == (
            DiffSegment(UNCHANGED, "a\n"),
            DiffSegment(ADDED, "b\nc\nd\n"),
        )

    def test_missing_final_newline(self):
        segments = diff_lines("hello", "hello\nworld")
        assert reconstruct(segments, "before") == "hello"
        assert reconstruct(segments, "after") == "hello\nworld"

    @pytest.mark.parametrize(
        "before,after",
        [
            ("a\nb\nc\n", "c\nb\na\n"),
            ("x\ny\nx\ny\n", "y\nx\ny\nx\n"),
            ("one\ntwo\r\nthree", "one\r\ntwo\nthree\n"),
            ("\n\n\n", "\n"),
            ("fn main() {\n}\n", "// header\nfn main() {\n    run();\n}\n"),
        ],
    )
    def test_round_trip(self, before, after):
        segments = diff_lines(before, after)
        assert reconstruct(segments, "before") == before
        assert reconstruct(segments, "after") == after
        kinds = [s.kind for s in segments]
        assert all(a != b for a, b in zip(kinds, kinds[1:]))

    def test_reconstruct_rejects_unknown_side(self):
        with pytest.raises(ValueError, match="Unknown side"):
            reconstruct((), "middle")


class TestCommitDiffer:
    def test_scenario_append_line(self, clock):
        differ = make_differ(clock)
        stage(differ, "a.txt", b"hello\n")
        differ.graph.commit("first")
        stage(differ, "a.txt", b"hello\nworld\n")
        second = differ.graph.commit("second")

        (file_diff,) = list(differ.diff(second))
        assert file_diff.path == "a.txt"
        assert file_diff.status == MODIFIED
        assert file_diff.content == "hello\nworld\n"
        assert file_diff.segments == (
            DiffSegment(UNCHANGED, "hello\n"),
            DiffSegment(ADDED, "world\n"),
        )
        assert not any(s.kind == REMOVED for s in file_diff.segments)

    def test_first_commit(self, clock):
        differ = make_differ(clock)
        stage(differ, "a.txt", b"a\n")
        stage(differ, "b.txt", b"b\n")
        first = differ.graph.commit("first")

        diffs = list(differ.diff(first))
        assert [d.status for d in diffs] == [FIRST_COMMIT, FIRST_COMMIT]
        assert [d.content for d in diffs] == ["a\n", "b\n"]
        assert all(d.segments == () for d in diffs)

    def test_new_file(self, clock):
        differ = make_differ(clock)
        stage(differ, "a.txt", b"a\n")
        differ.graph.commit("first")
        stage(differ, "b.txt", b"b\n")
        second = differ.graph.commit("second")

        (file_diff,) = list(differ.diff(second))
        assert file_diff.path == "b.txt"
        assert file_diff.status == NEW_FILE
        assert file_diff.content == "b\n"
        assert file_diff.segments == ()

    def test_files_in_stored_order(self, clock):
        differ = make_differ(clock)
        stage(differ, "a.txt", b"a\n")
        differ.graph.commit("first")
        stage(differ, "z.txt", b"z\n")
        stage(differ, "a.txt", b"a\nb\n")
        second = differ.graph.commit("second")

        assert [(d.path, d.status) for d in differ.diff(second)] == [
            ("z.txt", NEW_FILE),
            ("a.txt", MODIFIED),
        ]

    def test_compares_only_against_parent(self, clock):
        differ = make_differ(clock)
        stage(differ, "a.txt", b"v1\n")
        differ.graph.commit("first")
        stage(differ, "b.txt", b"b\n")
        differ.graph.commit("second")
        stage(differ, "a.txt", b"v2\n")
        third = differ.graph.commit("third")

        # a.txt is absent from the second commit's snapshot
        (file_diff,) = list(differ.diff(third))
        assert file_diff.status == NEW_FILE

    def test_parent_duplicate_paths_use_first_match(self, clock):
        differ = make_differ(clock)
        objects = differ.graph.objects
        first_fp = objects.put(b"first\n")
        later_fp = objects.put(b"later\n")
        parent = Commit(
            timestamp="2024-01-01T00:00:00.000Z",
            message="legacy",
            files=(StagingEntry("a.txt", first_fp), StagingEntry("a.txt", later_fp)),
        )
        parent_fp = objects.put(parent.to_bytes())
        child = Commit(
            timestamp="2024-01-01T00:00:01.000Z",
            message="child",
            files=(StagingEntry("a.txt", objects.put(b"first\nmore\n")),),
            parent=parent_fp,
        )
        child_fp = objects.put(child.to_bytes())

        (file_diff,) = list(differ.diff(child_fp))
        assert file_diff.segments == (
            DiffSegment(UNCHANGED, "first\n"),
            DiffSegment(ADDED, "more\n"),
        )

    def test_missing_commit_raises_immediately(self):
        differ = make_differ()
        with pytest.raises(NotFound):
            differ.diff(fingerprint(b"no such commit"))

    def test_missing_blob_keeps_earlier_files(self, clock):
        differ = make_differ(clock)
        stage(differ, "a.txt", b"a\n")
        gone = stage(differ, "b.txt", b"b\n")
        first = differ.graph.commit("first")
        differ.graph.store.remove(f"objects/{gone}")

        produced = []
        with pytest.raises(NotFound):
            for file_diff in differ.diff(first):
                produced.append(file_diff.path)
        assert produced == ["a.txt"]

    def test_invalid_utf8_is_replaced(self, clock):
        differ = make_differ(clock)
        stage(differ, "bin", b"\xff\xfe\n")
        first = differ.graph.commit("first")
        (file_diff,) = list(differ.diff(first))
        assert "�" in file_diff.content

    def test_diff_does_not_mutate(self, clock):
        differ = make_differ(clock)
        stage(differ, "a.txt", b"a\n")
        differ.graph.commit("first")
        stage(differ, "a.txt", b"b\n")
        second = differ.graph.commit("second")
        keys_before = sorted(differ.graph.store.keys())
        head_before = differ.graph.head()
        list(differ.diff(second))
        assert sorted(differ.graph.store.keys()) == keys_before
        assert differ.graph.head() == head_before
