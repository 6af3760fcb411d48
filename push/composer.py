"""Notification composer: domain event -> push payload."""

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from django.conf import settings

from .exceptions import MissingTaskContext

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/static/pwa/icons/icon-192x192.png"
DEFAULT_BADGE = "/static/pwa/icons/icon-96x96.png"


class NotificationType(str, Enum):
    TASK_CREATED = "task_created"
    TASK_COMPLETED = "task_completed"
    TASK_DELETED = "task_deleted"
    TASK_DUE = "task_due"
    TEST_MESSAGE = "test_message"


@dataclass(frozen=True)
class TaskRef:
    id: str
    title: str


@dataclass(frozen=True)
class NotificationEvent:
    type: str
    task: Optional[TaskRef] = None
    message: Optional[str] = None

    @classmethod
    def for_task(cls, notification_type: NotificationType, task) -> "NotificationEvent":
        return cls(type=notification_type.value, task=TaskRef(id=str(task.pk), title=task.title))

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationEvent":
        """
        Acepta {"type": ..., "task": {"id"|"_id": ..., "title": ...}, "message": ...}.
        Un task sin id se trata como ausente.
        """
        task = None
        raw_task = data.get("task")
        if isinstance(raw_task, dict):
            task_id = raw_task.get("id", raw_task.get("_id"))
            if task_id not in (None, ""):
                task = TaskRef(id=str(task_id), title=str(raw_task.get("title") or ""))

        message = data.get("message")
        return cls(
            type=str(data.get("type") or ""),
            task=task,
            message=str(message) if message not in (None, "") else None,
        )


@dataclass
class NotificationPayload:
    title: str
    body: str
    icon: str
    badge: str
    tag: str
    data: dict = field(default_factory=dict)

    @property
    def url(self) -> str:
        return self.data.get("url", "/")

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "body": self.body,
            "icon": self.icon,
            "badge": self.badge,
            "tag": self.tag,
            "data": dict(self.data),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass(frozen=True)
class _Template:
    title: str
    body: str
    tag_prefix: str
    detail_url: bool


# type -> (title, body, tag, click url). {title} es el titulo de la tarea.
TASK_TEMPLATES = {
    NotificationType.TASK_CREATED.value: _Template(
        title="Task Created!",
        body='New task: "{title}" has been added.',
        tag_prefix="task-created",
        detail_url=True,
    ),
    NotificationType.TASK_COMPLETED.value: _Template(
        title="Task Completed! 🎉",
        body='Task "{title}" has been marked as complete.',
        tag_prefix="task-completed",
        detail_url=True,
    ),
    NotificationType.TASK_DELETED.value: _Template(
        title="Task Deleted",
        body='Task "{title}" has been removed.',
        tag_prefix="task-deleted",
        detail_url=False,
    ),
    NotificationType.TASK_DUE.value: _Template(
        title="Task Due!",
        body='Reminder: Task "{title}" is due.',
        tag_prefix="task-due",
        detail_url=True,
    ),
}

TEST_TITLE = "Test Notification"
TEST_BODY = "This is a test notification."
TEST_TAG = "test-notification"

GENERIC_TITLE = "Task Manager Update"
GENERIC_BODY = "You have a new update."
GENERIC_TAG = "generic-notification"

TASK_LIST_URL = "/tasks"


def task_detail_url(task_id: str) -> str:
    return f"/tasks/{task_id}"


def _icons():
    return (
        getattr(settings, "PWA_NOTIFICATION_ICON", DEFAULT_ICON),
        getattr(settings, "PWA_NOTIFICATION_BADGE", DEFAULT_BADGE),
    )


def compose(event: NotificationEvent, now_ms: Optional[int] = None) -> NotificationPayload:
    """
    Construye el payload para ``event``.

    Raises:
        MissingTaskContext: tipo de tarea sin referencia a la tarea.
    """
    icon, badge = _icons()
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)

    template = TASK_TEMPLATES.get(event.type)
    if template is not None:
        if event.task is None:
            raise MissingTaskContext(event.type)

        task = event.task
        data = {"timestamp": timestamp}
        if template.detail_url:
            data["url"] = task_detail_url(task.id)
            data["taskId"] = task.id
        else:
            data["url"] = TASK_LIST_URL

        return NotificationPayload(
            title=template.title,
            body=template.body.format(title=task.title),
            icon=icon,
            badge=badge,
            tag=f"{template.tag_prefix}-{task.id}",
            data=data,
        )

    if event.type == NotificationType.TEST_MESSAGE.value:
        return NotificationPayload(
            title=TEST_TITLE,
            body=event.message or TEST_BODY,
            icon=icon,
            badge=badge,
            tag=TEST_TAG,
            data={"url": "/", "timestamp": timestamp},
        )

    logger.warning("Unhandled notification type: %r", event.type)
    return NotificationPayload(
        title=GENERIC_TITLE,
        body=event.message or GENERIC_BODY,
        icon=icon,
        badge=badge,
        tag=GENERIC_TAG,
        data={"url": "/", "timestamp": timestamp},
    )
