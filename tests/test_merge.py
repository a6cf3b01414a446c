"""Tests for the line-level merge of diverged files."""

import pytest

from cloudsync.errors import MergeError
from cloudsync.sync.merge import (ADDED_MARKER, DIFF_DELETE, DIFF_EQUAL, DIFF_INSERT,
                                  REMOVED_MARKER, diff_lines, merge_contents, merge_text,
                                  split_lines, strip_marker)


def test_changed_line_is_annotated_on_both_sides():
    merged = merge_contents(b"line1\nline2\n", b"line1\nlineX\n", "notes.md")
    assert merged.decode("utf-8") == f"line1\n{REMOVED_MARKER}line2\n{ADDED_MARKER}lineX\n"


def test_artifact_contains_every_line_of_both_versions():
    local = "alpha\nbeta\ngamma\ndelta\n"
    remote = "alpha\nBETA\ngamma\nepsilon\nzeta\n"

    merged_lines = [strip_marker(line) for line in split_lines(merge_text(local, remote))]

    for line in split_lines(local) + split_lines(remote):
        assert line in merged_lines


def test_missing_final_newline_is_added():
    assert merge_text("a\nb", "a\nc") == f"a\n{REMOVED_MARKER}b\n{ADDED_MARKER}c\n"


def test_markers_from_an_earlier_merge_are_stripped():
    local = f"keep\n{REMOVED_MARKER}old\n{ADDED_MARKER}new\n"
    remote = "keep\nold\nnew\nmore\n"

    assert merge_text(local, remote) == f"keep\nold\nnew\n{ADDED_MARKER}more\n"


def test_only_one_marker_is_stripped():
    assert strip_marker(ADDED_MARKER + ADDED_MARKER + "x") == ADDED_MARKER + "x"
    assert strip_marker("plain") == "plain"
    assert strip_marker("") == ""


def test_blank_lines_are_kept():
    assert merge_text("a\n\nb\n", "a\n\nc\n") == f"a\n\n{REMOVED_MARKER}b\n{ADDED_MARKER}c\n"


def test_split_lines():
    assert split_lines("") == []
    assert split_lines("\n") == [""]
    assert split_lines("a") == ["a"]
    assert split_lines("a\nb\n") == ["a", "b"]


class TestDiffLines:
    def test_identical(self):
        assert diff_lines(["a", "b"], ["a", "b"]) == [(DIFF_EQUAL, ["a", "b"])]

    def test_both_empty(self):
        assert diff_lines([], []) == []

    def test_insert_inside(self):
        assert diff_lines(["a", "c"], ["a", "b", "c"]) == [
            (DIFF_EQUAL, ["a"]),
            (DIFF_INSERT, ["b"]),
            (DIFF_EQUAL, ["c"]),
        ]

    def test_delete_at_end(self):
        assert diff_lines(["a", "b", "c"], ["a"]) == [
            (DIFF_EQUAL, ["a"]),
            (DIFF_DELETE, ["b", "c"]),
        ]

    def test_one_side_contained_in_the_other(self):
        assert diff_lines(["b"], ["a", "b", "c"]) == [
            (DIFF_INSERT, ["a"]),
            (DIFF_EQUAL, ["b"]),
            (DIFF_INSERT, ["c"]),
        ]
        assert diff_lines(["x", "b", "y"], ["b"]) == [
            (DIFF_DELETE, ["x"]),
            (DIFF_EQUAL, ["b"]),
            (DIFF_DELETE, ["y"]),
        ]

    def test_unrelated_content(self):
        assert diff_lines(["a"], ["b"]) == [(DIFF_DELETE, ["a"]), (DIFF_INSERT, ["b"])]


def test_empty_inputs():
    assert merge_contents(b"", b"") == b""
    assert merge_contents(b"", b"new\n").decode("utf-8") == f"{ADDED_MARKER}new\n"
    assert merge_contents(b"old", b"").decode("utf-8") == f"{REMOVED_MARKER}old\n"


def test_non_utf8_content_raises_merge_error():
    with pytest.raises(MergeError) as excinfo:
        merge_contents(b"\xff\xfe\x00binary", b"text\n", "image.png")
    assert excinfo.value.identity == "image.png"


def test_merging_an_artifact_with_itself_is_stable():
    artifact = merge_text("one\ntwo\n", "one\nthree\n")
    again = merge_text(artifact, artifact)
    assert again == "one\ntwo\nthree\n"
