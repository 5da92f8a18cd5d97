# tests/core/test_edit_tracker.py
from codeweaver.core.edit_tracker import EditSnapshotTracker


def test_first_snapshot_wins():
    tracker = EditSnapshotTracker()
    assert tracker.record("a.py", "v0")
    assert not tracker.record("a.py", "v1")
    assert tracker.original("a.py") == "v0"
    assert "a.py" in tracker


def test_release_removes_snapshot():
    tracker = EditSnapshotTracker()
    tracker.record("a.py", "v0")
    assert tracker.release("a.py") == "v0"
    assert tracker.release("a.py") is None
    assert len(tracker) == 0


def test_forget_drops_only_given_paths():
    tracker = EditSnapshotTracker()
    tracker.record("a.py", "a")
    tracker.record("b.py", "b")
    tracker.forget(["a.py", "missing.py"])
    assert tracker.paths() == ["b.py"]


def test_diff_against_current_content():
    tracker = EditSnapshotTracker()
    tracker.record("a.py", "x = 1\ny = 2\n")
    diff = tracker.diff("a.py", "x = 1\ny = 3\n")

    assert diff[0] == "--- a/a.py\n"
    assert "-y = 2\n" in diff
    assert "+y = 3\n" in diff
    assert tracker.diff("other.py", "anything") == []
