"""
Tests for the reconciliation classifier.

Covers every decision rule, the empty-remote guard, plan ordering and the
guarantee that nothing is deleted without a baseline.
"""

import pytest

from cloudsync.sync.baseline import BaselineView
from cloudsync.sync.classifier import classify, summarize
from cloudsync.sync.models import ActionKind, FileRecord


def rec(identity, content_hash, directory=False):
    return FileRecord(identity=identity, content_hash=content_hash, is_directory=directory)


def kinds(plan):
    return {action.identity: action.kind for action in plan}


EMPTY = BaselineView()


class TestBothSides:
    def test_local_changed_remote_unchanged_uploads(self):
        plan = classify(
            [rec("a.md", "H1")],
            [rec("a.md", "H2")],
            BaselineView({"a.md": "H2"}),
            BaselineView({"a.md": "H1"}),
        )
        assert kinds(plan) == {"a.md": ActionKind.UPLOAD}
        assert plan[0].local.content_hash == "H1"
        assert plan[0].remote.content_hash == "H2"

    def test_remote_changed_local_unchanged_downloads(self):
        plan = classify(
            [rec("a.md", "H1")],
            [rec("a.md", "H2")],
            BaselineView({"a.md": "H0"}),
            BaselineView({"a.md": "H1"}),
        )
        assert kinds(plan) == {"a.md": ActionKind.DOWNLOAD}

    def test_both_changed_merges(self):
        plan = classify(
            [rec("a.md", "H1")],
            [rec("a.md", "H2")],
            BaselineView({"a.md": "H0"}),
            BaselineView({"a.md": "H0"}),
        )
        assert kinds(plan) == {"a.md": ActionKind.MERGE}

    def test_differing_without_any_baseline_merges(self):
        plan = classify([rec("a.md", "H1")], [rec("a.md", "H2")], EMPTY, EMPTY)
        assert kinds(plan) == {"a.md": ActionKind.MERGE}

    def test_equal_hashes_produce_no_action(self):
        plan = classify(
            [rec("a.md", "H1"), rec("b.md", "H3")],
            [rec("a.md", "H1"), rec("b.md", "H3")],
            BaselineView({"a.md": "H0"}),
            EMPTY,
        )
        assert plan == []


class TestLocalOnly:
    def test_new_local_file_uploads(self):
        plan = classify([rec("new.md", "H1"), rec("keep.md", "K")], [rec("keep.md", "K")], EMPTY, EMPTY)
        assert kinds(plan) == {"new.md": ActionKind.UPLOAD}

    def test_unchanged_local_file_missing_remotely_is_deleted_locally(self):
        plan = classify(
            [rec("gone.md", "H1"), rec("keep.md", "K")],
            [rec("keep.md", "K")],
            BaselineView({"gone.md": "H1", "keep.md": "K"}),
            BaselineView({"gone.md": "H1", "keep.md": "K"}),
        )
        assert kinds(plan) == {"gone.md": ActionKind.DELETE_LOCAL}
        assert plan[0].remote is None

    def test_modified_local_file_missing_remotely_is_uploaded_again(self):
        plan = classify(
            [rec("gone.md", "H9"), rec("keep.md", "K")],
            [rec("keep.md", "K")],
            BaselineView({"gone.md": "H1", "keep.md": "K"}),
            BaselineView({"gone.md": "H2", "keep.md": "K"}),
        )
        assert kinds(plan) == {"gone.md": ActionKind.UPLOAD}

    def test_missing_local_baseline_entry_never_counts_as_unchanged(self):
        plan = classify(
            [rec("gone.md", "H1"), rec("keep.md", "K")],
            [rec("keep.md", "K")],
            BaselineView({"gone.md": "H1"}),
            EMPTY,
        )
        assert kinds(plan) == {"gone.md": ActionKind.UPLOAD}


class TestRemoteOnly:
    def test_new_remote_file_downloads(self):
        plan = classify([rec("keep.md", "K")], [rec("keep.md", "K"), rec("new.md", "R")], EMPTY, EMPTY)
        assert kinds(plan) == {"new.md": ActionKind.DOWNLOAD}
        assert plan[0].local is None

    def test_known_remote_file_missing_locally_is_deleted_remotely(self):
        plan = classify(
            [rec("keep.md", "K")],
            [rec("keep.md", "K"), rec("old.md", "R")],
            BaselineView({"old.md": "R", "keep.md": "K"}),
            EMPTY,
        )
        assert kinds(plan) == {"old.md": ActionKind.DELETE_REMOTE}


class TestEmptyRemoteGuard:
    def test_every_local_file_uploads_regardless_of_baselines(self):
        local = [rec(f"f{i}.md", f"H{i}") for i in range(5)]
        synced = BaselineView({f"f{i}.md": f"H{i}" for i in range(5)})

        plan = classify(local, [], synced, synced)

        assert len(plan) == 5
        assert all(action.kind == ActionKind.UPLOAD for action in plan)

    def test_directories_do_not_count_as_remote_content(self):
        plan = classify(
            [rec("a.md", "H1")],
            [rec("folder", "", directory=True)],
            BaselineView({"a.md": "H1"}),
            BaselineView({"a.md": "H1"}),
        )
        assert kinds(plan) == {"a.md": ActionKind.UPLOAD}

    def test_both_sides_empty_gives_empty_plan(self):
        assert classify([], [], BaselineView({"x": "1"}), EMPTY) == []


def test_no_baseline_never_deletes():
    local = [rec("a", "1"), rec("b", "2"), rec("c", "3")]
    remote = [rec("b", "2"), rec("c", "X"), rec("d", "4")]

    plan = classify(local, remote, EMPTY, BaselineView({"a": "1", "c": "3"}))

    assert not {ActionKind.DELETE_LOCAL, ActionKind.DELETE_REMOTE} & {a.kind for a in plan}
    assert kinds(plan) == {"a": ActionKind.UPLOAD, "c": ActionKind.DOWNLOAD, "d": ActionKind.DOWNLOAD}


def test_plan_has_one_action_per_identity_in_deterministic_order():
    local = [rec("z", "1"), rec("m", "2"), rec("b", "3"), rec("same", "S")]
    remote = [rec("y", "4"), rec("m", "5"), rec("a", "6"), rec("same", "S")]
    synced = BaselineView({"b": "3", "a": "6"})

    plan = classify(local, remote, synced, BaselineView({"b": "3"}))
    identities = [action.identity for action in plan]

    assert len(identities) == len(set(identities))
    # local side first (sorted), then remote-only files (sorted)
    assert identities == ["b", "m", "z", "a", "y"]
    assert kinds(plan) == {
        "b": ActionKind.DELETE_LOCAL,
        "m": ActionKind.MERGE,
        "z": ActionKind.UPLOAD,
        "a": ActionKind.DELETE_REMOTE,
        "y": ActionKind.DOWNLOAD,
    }


def test_directories_are_ignored():
    plan = classify(
        [rec("docs", "", directory=True), rec("docs/a.md", "1")],
        [rec("docs/a.md", "1"), rec("pics", "", directory=True)],
        EMPTY,
        EMPTY,
    )
    assert plan == []


def test_duplicate_identity_is_rejected():
    with pytest.raises(ValueError):
        classify([rec("a", "1"), rec("a", "2")], [rec("b", "3")], EMPTY, EMPTY)


def test_summarize_counts_per_kind():
    plan = classify(
        [rec("a", "1"), rec("b", "2")],
        [rec("c", "3"), rec("b", "9")],
        EMPTY,
        EMPTY,
    )
    assert summarize(plan) == {
        ActionKind.UPLOAD: 1,
        ActionKind.MERGE: 1,
        ActionKind.DOWNLOAD: 1,
    }
    assert summarize([]) == {}
