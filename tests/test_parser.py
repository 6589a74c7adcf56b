"""Task list parsing and progress tests."""

import pytest

from panekeeper.tasks import (
    COMPLETED,
    FAILED,
    IN_PROGRESS,
    PENDING,
    Task,
    calculate_progress,
    calculate_progress_state,
    diff_tasks,
    generate_task_id,
    group_by_status,
    normalize_status,
    parse_todos,
)


def _todos(*pairs):
    return {"todos": [{"content": content, "status": status, "activeForm": f"{content}ing"} for content, status in pairs]}


class TestNormalizeStatus:
    @pytest.mark.parametrize("raw", ["completed", "Done", "FINISHED", "complete"])
    def test_completed(self, raw):
        assert normalize_status(raw) == COMPLETED

    @pytest.mark.parametrize("raw", ["in_progress", "InProgress", "in-progress", "active", "running"])
    def test_in_progress(self, raw):
        assert normalize_status(raw) == IN_PROGRESS

    @pytest.mark.parametrize("raw", ["failed", "ERROR"])
    def test_failed(self, raw):
        assert normalize_status(raw) == FAILED

    @pytest.mark.parametrize("raw", ["pending", "todo", "", None, 3])
    def test_everything_else_is_pending(self, raw):
        assert normalize_status(raw) == PENDING


class TestParseTodos:
    """TodoWrite payload parsing"""

    def test_failed_task_caps_percentage(self):
        result = parse_todos(_todos(("A", "completed"), ("B", "failed"), ("C", "pending")))

        progress = result.progress
        assert (progress.completed, progress.failed, progress.pending, progress.total) == (1, 1, 1, 3)
        assert progress.percentage == 33

    def test_current_task_is_first_in_progress(self):
        result = parse_todos(_todos(("A", "completed"), ("B", "active"), ("C", "running")))
        assert result.current_task == "B"

    def test_no_current_task(self):
        assert parse_todos(_todos(("A", "pending"))).current_task is None

    def test_ids_are_content_fingerprints(self):
        first = parse_todos(_todos(("Write tests", "pending"))).tasks[0]
        again = parse_todos(_todos(("Write tests", "completed"))).tasks[0]
        assert first.id == again.id == generate_task_id("Write tests")
        assert len(first.id) == 8

    def test_active_form_defaults_to_content(self):
        task = parse_todos({"todos": [{"content": "Lint", "status": "pending"}]}).tasks[0]
        assert task.active_form == "Lint"

    def test_invalid_items_are_skipped(self):
        result = parse_todos({"todos": ["junk", {"status": "pending"}, {"content": "  "}, {"content": "Ok"}]})
        assert [t.content for t in result.tasks] == ["Ok"]

    @pytest.mark.parametrize("payload", [None, {}, {"todos": "nope"}, [], "x"])
    def test_malformed_payload_is_empty(self, payload):
        result = parse_todos(payload)
        assert result.tasks == []
        assert result.progress.total == 0
        assert result.progress.percentage == 0
        assert result.has_changes is False


class TestProgress:
    """Percentage rounding"""

    def test_rounds_half_up(self):
        tasks = [Task(id=str(n), content=str(n), active_form="", status=PENDING) for n in range(8)]
        tasks[0].status = COMPLETED
        assert calculate_progress(tasks) == 13  # 12.5

    def test_two_thirds(self):
        tasks = [Task(id=str(n), content=str(n), active_form="", status=COMPLETED) for n in range(3)]
        tasks[2].status = IN_PROGRESS
        assert calculate_progress(tasks) == 67

    def test_empty(self):
        assert calculate_progress_state([]).percentage == 0

    def test_total_elapsed(self):
        tasks = [
            Task(id="a", content="a", active_form="", status=COMPLETED, elapsed_ms=1500),
            Task(id="b", content="b", active_form="", status=IN_PROGRESS, elapsed_ms=500),
        ]
        assert calculate_progress_state(tasks).total_elapsed_ms == 2000


class TestDiffTasks:
    """Snapshot comparison by fingerprint"""

    def test_added_removed_changed(self):
        before = parse_todos(_todos(("A", "pending"), ("B", "pending"))).tasks
        after = parse_todos(_todos(("A", "in_progress"), ("C", "pending"))).tasks

        diff = diff_tasks(before, after)

        assert [t.content for t in diff.added] == ["C"]
        assert [t.content for t in diff.removed] == ["B"]
        assert len(diff.status_changed) == 1
        change = diff.status_changed[0]
        assert (change.task.content, change.from_status, change.to_status) == ("A", PENDING, IN_PROGRESS)
        assert diff.has_changes

    def test_identical_snapshots(self):
        tasks = parse_todos(_todos(("A", "pending"))).tasks
        assert diff_tasks(tasks, list(tasks)).has_changes is False

    def test_group_by_status(self):
        tasks = parse_todos(_todos(("A", "done"), ("B", "pending"), ("C", "done"))).tasks
        groups = group_by_status(tasks)
        assert [t.content for t in groups[COMPLETED]] == ["A", "C"]
        assert [t.content for t in groups[PENDING]] == ["B"]
        assert groups[FAILED] == []


class TestTaskSerialization:
    def test_round_trip_uses_camel_case(self):
        task = Task(id="abcd1234", content="A", active_form="Doing A", status=COMPLETED, started_at=1, completed_at=5, elapsed_ms=4)
        data = task.to_dict()
        assert data["activeForm"] == "Doing A"
        assert data["elapsedMs"] == 4
        assert Task.from_dict(data) == task
