"""Tests for task services."""
from datetime import timedelta

import pytest
from django.utils import timezone

from tasks import services
from tasks.exceptions import TaskNotFound, TaskValidationError
from tasks.models import Task


def _future(hours=2):
    return (timezone.now() + timedelta(hours=hours)).isoformat()


def _sent_payload(mock_dispatcher):
    return mock_dispatcher.dispatch.call_args.args[0]


@pytest.mark.django_db
class TestCreateTask:

    def test_creates_pending_task_and_notifies(self, mock_dispatcher, reminders):
        task = services.create_task(
            {"title": "  Buy milk ", "dueDate": _future(), "tags": "home, errands, home"},
            dispatcher=mock_dispatcher,
            reminders=reminders,
        )

        assert task.pk is not None
        assert task.title == "Buy milk"
        assert task.completed is False
        assert task.completed_at is None
        assert task.priority == "medium"
        assert task.tags == ["home", "errands"]

        payload = _sent_payload(mock_dispatcher)
        assert payload.tag == f"task-created-{task.pk}"
        assert payload.url == f"/tasks/{task.pk}"

    def test_schedules_reminder_when_due_soon(self, mock_dispatcher, reminders):
        task = services.create_task(
            {"title": "Call mom", "dueDate": _future(hours=5)},
            dispatcher=mock_dispatcher,
            reminders=reminders,
        )

        assert reminders.pending() == [task.pk]

    def test_no_reminder_when_due_later(self, mock_dispatcher, reminders):
        services.create_task(
            {"title": "Renew passport", "dueDate": _future(hours=72)},
            dispatcher=mock_dispatcher,
            reminders=reminders,
        )

        assert reminders.pending() == []

    def test_missing_fields(self, mock_dispatcher, reminders):
        with pytest.raises(TaskValidationError) as exc:
            services.create_task({}, dispatcher=mock_dispatcher, reminders=reminders)

        assert "title" in exc.value.errors
        assert exc.value.errors["dueDate"] == ["Due date is required"]
        assert Task.objects.count() == 0
        mock_dispatcher.dispatch.assert_not_called()

    def test_due_date_must_be_in_future(self, mock_dispatcher, reminders):
        past = (timezone.now() - timedelta(hours=1)).isoformat()

        with pytest.raises(TaskValidationError) as exc:
            services.create_task({"title": "Too late", "dueDate": past}, dispatcher=mock_dispatcher, reminders=reminders)

        assert exc.value.errors["dueDate"] == ["Due date must be in the future"]

    def test_unparseable_due_date(self, mock_dispatcher, reminders):
        with pytest.raises(TaskValidationError) as exc:
            services.create_task({"title": "When?", "dueDate": "tomorrow"}, dispatcher=mock_dispatcher, reminders=reminders)

        assert "dueDate" in exc.value.errors

    def test_title_too_long(self, mock_dispatcher, reminders):
        with pytest.raises(TaskValidationError) as exc:
            services.create_task({"title": "x" * 101, "dueDate": _future()}, dispatcher=mock_dispatcher, reminders=reminders)

        assert "title" in exc.value.errors

    def test_invalid_priority(self, mock_dispatcher, reminders):
        with pytest.raises(TaskValidationError) as exc:
            services.create_task(
                {"title": "Odd", "dueDate": _future(), "priority": "urgent"},
                dispatcher=mock_dispatcher,
                reminders=reminders,
            )

        assert "priority" in exc.value.errors

    def test_notification_failure_does_not_fail_create(self, mock_dispatcher, reminders):
        mock_dispatcher.dispatch.side_effect = RuntimeError("push service down")

        task = services.create_task({"title": "Still saved", "dueDate": _future()}, dispatcher=mock_dispatcher, reminders=reminders)

        assert Task.objects.filter(pk=task.pk).exists()


@pytest.mark.django_db
class TestCompleteTask:

    def test_complete_sets_completed_at_and_notifies(self, make_task, mock_dispatcher, reminders):
        task = make_task()
        reminders.schedule(task)

        done = services.complete_task(task.pk, dispatcher=mock_dispatcher, reminders=reminders)

        assert done.completed is True
        assert done.completed_at is not None
        assert reminders.pending() == []
        assert _sent_payload(mock_dispatcher).tag == f"task-completed-{task.pk}"

    def test_complete_twice_is_idempotent(self, make_task, mock_dispatcher, reminders):
        task = make_task()

        first = services.complete_task(task.pk, dispatcher=mock_dispatcher, reminders=reminders)
        second = services.complete_task(task.pk, dispatcher=mock_dispatcher, reminders=reminders)

        assert second.completed_at == first.completed_at
        assert mock_dispatcher.dispatch.call_count == 1

    def test_unknown_task(self, mock_dispatcher, reminders):
        with pytest.raises(TaskNotFound):
            services.complete_task(999, dispatcher=mock_dispatcher, reminders=reminders)


@pytest.mark.django_db
class TestDeleteTask:

    def test_delete_removes_and_cancels_reminder(self, make_task, mock_dispatcher, reminders):
        task = make_task()
        reminders.schedule(task)

        services.delete_task(task.pk, dispatcher=mock_dispatcher, reminders=reminders)

        assert not Task.objects.filter(pk=task.pk).exists()
        assert reminders.pending() == []
        mock_dispatcher.dispatch.assert_not_called()

    def test_delete_notification_when_enabled(self, make_task, mock_dispatcher, reminders, settings):
        settings.PUSH_NOTIFY_ON_DELETE = True
        task = make_task()

        services.delete_task(task.pk, dispatcher=mock_dispatcher, reminders=reminders)

        payload = _sent_payload(mock_dispatcher)
        assert payload.tag == f"task-deleted-{task.pk}"
        assert payload.url == "/tasks"

    def test_unknown_task(self, mock_dispatcher, reminders):
        with pytest.raises(TaskNotFound):
            services.delete_task(999, dispatcher=mock_dispatcher, reminders=reminders)


@pytest.mark.django_db
class TestUpdateTask:

    def test_partial_update(self, make_task, mock_dispatcher, reminders):
        task = make_task()

        updated = services.update_task(
            task.pk,
            {"title": "Buy oat milk", "priority": "high", "unknown": "ignored"},
            dispatcher=mock_dispatcher,
            reminders=reminders,
        )

        assert updated.title == "Buy oat milk"
        assert updated.priority == "high"
        mock_dispatcher.dispatch.assert_not_called()

    def test_completing_through_update_notifies(self, make_task, mock_dispatcher, reminders):
        task = make_task()

        updated = services.update_task(task.pk, {"completed": True}, dispatcher=mock_dispatcher, reminders=reminders)

        assert updated.completed_at is not None
        assert _sent_payload(mock_dispatcher).tag == f"task-completed-{task.pk}"

    def test_completed_task_cannot_be_reopened(self, make_task, mock_dispatcher, reminders):
        task = make_task(completed=True)

        with pytest.raises(TaskValidationError) as exc:
            services.update_task(task.pk, {"completed": False}, dispatcher=mock_dispatcher, reminders=reminders)

        assert "completed" in exc.value.errors
        task.refresh_from_db()
        assert task.completed is True
        assert task.completed_at is not None

    def test_due_date_change_reschedules(self, make_task, mock_dispatcher, reminders):
        task = make_task(due_in=timedelta(days=5))
        assert reminders.schedule(task) is False

        services.update_task(task.pk, {"dueDate": _future(hours=1)}, dispatcher=mock_dispatcher, reminders=reminders)

        assert reminders.pending() == [task.pk]


@pytest.mark.django_db
class TestQueries:

    def test_get_task_not_found(self):
        with pytest.raises(TaskNotFound) as exc:
            services.get_task(999)

        assert str(exc.value) == "Task not found"

    def test_get_task_bad_id(self):
        with pytest.raises(TaskNotFound):
            services.get_task("not-a-number")

    def test_list_newest_first(self, make_task):
        older = make_task(title="Older", created_at=timezone.now() - timedelta(hours=1))
        newer = make_task(title="Newer")

        assert services.list_tasks() == [newer, older]

    def test_serialize_task(self, make_task):
        task = make_task(tags=["home"])

        data = services.serialize_task(task)

        assert data["id"] == str(task.pk)
        assert data["title"] == "Buy milk"
        assert data["completed"] is False
        assert data["completedAt"] is None
        assert data["tags"] == ["home"]
        assert set(data) == {
            "id", "title", "description", "dueDate", "completed",
            "priority", "tags", "createdAt", "completedAt",
        }

    def test_stats(self, make_task):
        make_task(title="Pending")
        make_task(title="Done", completed=True)
        make_task(title="Late", due_in=timedelta(hours=-1))
        make_task(title="Late but done", due_in=timedelta(hours=-1), completed=True)

        assert services.task_stats() == {"total": 4, "completed": 2, "pending": 2, "overdue": 1}

    def test_stats_empty(self):
        assert services.task_stats() == {"total": 0, "completed": 0, "pending": 0, "overdue": 0}


@pytest.mark.django_db
class TestTaskModel:

    def test_completed_at_follows_completed(self, make_task):
        task = make_task(completed=True)

        assert task.completed_at is not None

    def test_is_overdue(self, make_task):
        assert make_task(due_in=timedelta(hours=-1)).is_overdue is True
        assert make_task(due_in=timedelta(hours=1)).is_overdue is False
