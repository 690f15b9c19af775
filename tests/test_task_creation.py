"""Tests for task creation defaults and the persisted task layout."""

from datetime import date, datetime, timezone

from whackatask.models.profile import Task, TaskStatus
from whackatask.models.task_factory import create_task, generate_task_id

from fakes import FakeClock


class TestTaskCreationDefaults:
    """Test that task creation uses correct default values."""

    def test_default_task_values(self, clock):
        """New tasks are unwhacked with an empty description and no due date."""
        task = create_task("Pay bills", clock=clock)

        assert task.status == TaskStatus.UNWHACKED
        assert task.description == ""
        assert task.due_date is None
        assert task.created_at == datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)

    def test_id_is_epoch_milliseconds(self, clock):
        task = create_task("Pay bills", clock=clock)

        assert task.id == "1735722000000"

    def test_consecutive_tasks_get_distinct_ids(self):
        clock = FakeClock(datetime(2025, 1, 1, tzinfo=timezone.utc))

        assert create_task("a", clock=clock).id != create_task("b", clock=clock).id

    def test_same_millisecond_collides(self):
        """Ids are not re-checked for uniqueness."""
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert generate_task_id(now) == generate_task_id(now)

    def test_due_date_accepts_iso_string(self, clock):
        task = create_task("Pay bills", due_date="2025-01-01", clock=clock)

        assert task.due_date == date(2025, 1, 1)


class TestTaskModel:
    """Test parsing and serialization of stored tasks."""

    def test_accepts_persisted_spelling(self):
        task = Task.model_validate({"id": "1", "name": "x", "dueDate": "2025-02-03", "createdAt": "2025-01-01T00:00:00Z"})

        assert task.due_date == date(2025, 2, 3)
        assert task.created_at.year == 2025

    def test_created_at_is_optional(self):
        """Tasks written before creation times were recorded still load."""
        assert Task(id="1", name="x").created_at is None

    def test_dumps_persisted_spelling(self, clock):
        data = create_task("Pay bills", due_date=date(2025, 1, 1), clock=clock).model_dump(mode="json", by_alias=True)

        assert set(data) == {"id", "name", "description", "status", "dueDate", "createdAt"}
        assert data["status"] == "unwhacked"
        assert data["dueDate"] == "2025-01-01"

    def test_unknown_keys_are_dropped(self):
        task = Task.model_validate({"id": "1", "name": "x", "completed": True})

        assert "completed" not in task.model_dump()

    def test_accepts_field_names(self):
        """Python-side field names and the stored camelCase aliases both populate the model."""
        task = Task(id="1", name="x", due_date=date(2025, 2, 3), status=TaskStatus.WHACKED)

        assert task.due_date == date(2025, 2, 3)
        assert task.status == "whacked"
        assert isinstance(task.status, str)
        assert Task.model_config["populate_by_name"] is True
