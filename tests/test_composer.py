"""Tests for the notification composer."""
import json

import pytest

from push.composer import (
    DEFAULT_BADGE,
    DEFAULT_ICON,
    GENERIC_TAG,
    NotificationEvent,
    NotificationType,
    TaskRef,
    compose,
)
from push.exceptions import MissingTaskContext

BUY_MILK = TaskRef(id="t1", title="Buy milk")


def _event(ntype, task=BUY_MILK, message=None):
    return NotificationEvent(type=ntype.value if hasattr(ntype, "value") else ntype, task=task, message=message)


class TestTaskNotifications:

    def test_task_created(self):
        payload = compose(_event(NotificationType.TASK_CREATED), now_ms=1700000000000)

        assert payload.title == "Task Created!"
        assert "Buy milk" in payload.body
        assert payload.tag == "task-created-t1"
        assert payload.data == {"url": "/tasks/t1", "taskId": "t1", "timestamp": 1700000000000}
        assert payload.icon == DEFAULT_ICON
        assert payload.badge == DEFAULT_BADGE

    def test_task_completed(self):
        payload = compose(_event(NotificationType.TASK_COMPLETED))

        assert payload.title.startswith("Task Completed!")
        assert payload.body == 'Task "Buy milk" has been marked as complete.'
        assert payload.tag == "task-completed-t1"
        assert payload.url == "/tasks/t1"

    def test_task_due(self):
        payload = compose(_event(NotificationType.TASK_DUE))

        assert payload.title == "Task Due!"
        assert payload.tag == "task-due-t1"
        assert payload.url == "/tasks/t1"

    def test_task_deleted_points_to_list(self):
        payload = compose(_event(NotificationType.TASK_DELETED))

        assert payload.tag == "task-deleted-t1"
        assert payload.url == "/tasks"
        assert "taskId" not in payload.data

    @pytest.mark.parametrize("ntype", [
        NotificationType.TASK_CREATED,
        NotificationType.TASK_COMPLETED,
        NotificationType.TASK_DELETED,
        NotificationType.TASK_DUE,
    ])
    def test_task_types_require_a_task(self, ntype):
        with pytest.raises(MissingTaskContext) as exc:
            compose(_event(ntype, task=None))

        assert str(exc.value) == f"Task data missing for {ntype.value} notification"

    def test_icons_follow_settings(self, settings):
        settings.PWA_NOTIFICATION_ICON = "/static/custom/icon.png"
        settings.PWA_NOTIFICATION_BADGE = "/static/custom/badge.png"

        payload = compose(_event(NotificationType.TASK_CREATED))

        assert payload.icon == "/static/custom/icon.png"
        assert payload.badge == "/static/custom/badge.png"


class TestOtherNotifications:

    def test_test_message_uses_custom_body(self):
        payload = compose(_event(NotificationType.TEST_MESSAGE, task=None, message="Hello there"))

        assert payload.title == "Test Notification"
        assert payload.body == "Hello there"
        assert payload.tag == "test-notification"
        assert payload.url == "/"

    def test_test_message_default_body(self):
        payload = compose(_event(NotificationType.TEST_MESSAGE, task=None))

        assert payload.body == "This is a test notification."

    def test_unknown_type_falls_back_to_generic(self):
        payload = compose(_event("foo", task=None))

        assert payload.title == "Task Manager Update"
        assert payload.tag == GENERIC_TAG
        assert payload.url == "/"


class TestEventParsing:

    def test_from_dict_accepts_underscore_id(self):
        event = NotificationEvent.from_dict({"type": "task_due", "task": {"_id": 7, "title": "Walk dog"}})

        assert event.task == TaskRef(id="7", title="Walk dog")

    def test_from_dict_task_without_id_is_absent(self):
        event = NotificationEvent.from_dict({"type": "task_created", "task": {"title": "No id"}})

        assert event.task is None

    def test_payload_json_shape(self):
        payload = compose(_event(NotificationType.TASK_CREATED), now_ms=1)

        decoded = json.loads(payload.to_json())

        assert set(decoded) == {"title", "body", "icon", "badge", "tag", "data"}
        assert decoded["data"]["url"] == "/tasks/t1"
