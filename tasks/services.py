"""Task services: CRUD, completion and stats, with push side effects."""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from push.composer import NotificationEvent, NotificationType
from push.services import notify_quietly

from .exceptions import TaskNotFound, TaskServiceError, TaskValidationError
from .models import Task
from .reminders import due_reminders

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "dueDate", "priority", "tags", "completed")


# -------------------
# Parsing / serializacion
# -------------------
def _parse_due_date(value, errors: dict):
    if value in (None, ""):
        errors.setdefault("dueDate", []).append("Due date is required")
        return None

    parsed = parse_datetime(value) if isinstance(value, str) else None
    if parsed is None:
        errors.setdefault("dueDate", []).append("Due date must be a valid date and time")
        return None

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone.get_current_timezone())

    if parsed <= timezone.now():
        errors.setdefault("dueDate", []).append("Due date must be in the future")
        return None
    return parsed


def _parse_tags(value, errors: dict) -> list:
    if value in (None, ""):
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        errors.setdefault("tags", []).append("Tags must be a list of strings")
        return []

    tags = []
    for tag in value:
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _clean_text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _full_clean(task: Task, errors: dict):
    try:
        task.full_clean(exclude=["due_date"] if "dueDate" in errors else None)
    except ValidationError as ex:
        for field, messages in ex.message_dict.items():
            key = "dueDate" if field == "due_date" else field
            errors.setdefault(key, []).extend(messages)
    if errors:
        raise TaskValidationError(errors)


def _isoformat(value):
    return value.isoformat() if value else None


def serialize_task(task: Task) -> dict:
    return {
        "id": str(task.pk),
        "title": task.title,
        "description": task.description or "",
        "dueDate": _isoformat(task.due_date),
        "completed": task.completed,
        "priority": task.priority,
        "tags": list(task.tags or []),
        "createdAt": _isoformat(task.created_at),
        "completedAt": _isoformat(task.completed_at),
    }


def _notify(notification_type: NotificationType, task: Task, dispatcher=None):
    return notify_quietly(NotificationEvent.for_task(notification_type, task), dispatcher=dispatcher)


# -------------------
# Operaciones
# -------------------
def get_task(task_id) -> Task:
    try:
        return Task.objects.get(pk=task_id)
    except (Task.DoesNotExist, ValueError, TypeError):
        raise TaskNotFound(task_id)


def create_task(data: dict, dispatcher=None, reminders=None) -> Task:
    """
    Crea una tarea, envia "task_created" y programa el aviso de vencimiento
    si vence dentro de 24h.

    Raises:
        TaskValidationError: campos invalidos (mensajes por campo).
        TaskServiceError: fallo de persistencia.
    """
    reminders = reminders or due_reminders
    errors = {}

    task = Task(
        title=_clean_text(data.get("title")),
        description=_clean_text(data.get("description")),
        due_date=_parse_due_date(data.get("dueDate", data.get("due_date")), errors),
        priority=data.get("priority") or "medium",
        tags=_parse_tags(data.get("tags"), errors),
    )
    _full_clean(task, errors)

    try:
        task.save()
    except DatabaseError as ex:
        logger.exception("Error creating task")
        raise TaskServiceError("Failed to create task") from ex

    logger.info("Task %s created: %r", task.pk, task.title)
    _notify(NotificationType.TASK_CREATED, task, dispatcher)
    reminders.schedule(task)
    return task


def list_tasks() -> list:
    try:
        return list(Task.objects.order_by("-created_at"))
    except DatabaseError as ex:
        logger.exception("Error fetching tasks")
        raise TaskServiceError("Failed to fetch tasks") from ex


def complete_task(task_id, dispatcher=None, reminders=None) -> Task:
    """
    Marca la tarea como completada. Completar una tarea ya completada no
    cambia completed_at ni vuelve a notificar.
    """
    reminders = reminders or due_reminders
    task = get_task(task_id)
    if task.completed:
        return task

    task.completed = True
    try:
        task.save(update_fields=["completed", "completed_at", "updated_at"])
    except DatabaseError as ex:
        logger.exception("Error completing task %s", task_id)
        raise TaskServiceError("Failed to complete task") from ex

    reminders.cancel(task.pk)
    _notify(NotificationType.TASK_COMPLETED, task, dispatcher)
    return task


def delete_task(task_id, dispatcher=None, reminders=None):
    reminders = reminders or due_reminders
    task = get_task(task_id)
    pk = task.pk
    event = NotificationEvent.for_task(NotificationType.TASK_DELETED, task)

    try:
        task.delete()
    except DatabaseError as ex:
        logger.exception("Error deleting task %s", task_id)
        raise TaskServiceError("Failed to delete task") from ex

    reminders.cancel(pk)
    logger.info("Task %s deleted", pk)

    if getattr(settings, "PUSH_NOTIFY_ON_DELETE", False):
        notify_quietly(event, dispatcher=dispatcher)


def update_task(task_id, changes: dict, dispatcher=None, reminders=None) -> Task:
    """
    Actualizacion parcial. Solo se validan los campos enviados; una tarea
    completada no puede volver a pendiente.
    """
    reminders = reminders or due_reminders
    task = get_task(task_id)
    changes = {k: v for k, v in (changes or {}).items() if k in UPDATABLE_FIELDS}
    errors = {}

    if "title" in changes:
        task.title = _clean_text(changes["title"])
    if "description" in changes:
        task.description = _clean_text(changes["description"])
    if "priority" in changes:
        task.priority = changes["priority"]
    if "tags" in changes:
        task.tags = _parse_tags(changes["tags"], errors)
    if "dueDate" in changes:
        due_date = _parse_due_date(changes["dueDate"], errors)
        if due_date is not None:
            task.due_date = due_date

    just_completed = False
    if "completed" in changes:
        completed = changes["completed"]
        if not isinstance(completed, bool):
            errors.setdefault("completed", []).append("Completed must be a boolean")
        elif task.completed and not completed:
            errors.setdefault("completed", []).append("Completed tasks cannot be reopened")
        elif completed and not task.completed:
            task.completed = True
            just_completed = True

    _full_clean(task, errors)

    try:
        task.save()
    except DatabaseError as ex:
        logger.exception("Error updating task %s", task_id)
        raise TaskServiceError("Failed to update task") from ex

    if just_completed:
        reminders.cancel(task.pk)
        _notify(NotificationType.TASK_COMPLETED, task, dispatcher)
    elif "dueDate" in changes:
        reminders.cancel(task.pk)
        reminders.schedule(task)
    return task


def task_stats(now=None) -> dict:
    now = now or timezone.now()
    try:
        stats = Task.objects.aggregate(
            total=Count("id"),
            completed=Count("id", filter=Q(completed=True)),
            pending=Count("id", filter=Q(completed=False)),
            overdue=Count("id", filter=Q(completed=False, due_date__lt=now)),
        )
    except DatabaseError as ex:
        logger.exception("Error fetching task stats")
        raise TaskServiceError("Failed to fetch task stats") from ex
    return {key: stats.get(key) or 0 for key in ("total", "completed", "pending", "overdue")}
