"""
Due-time reminders.

Best-effort and process-local: each reminder is a ``threading.Timer`` held
in memory. A restart (or a deploy) silently drops every pending reminder;
nothing is persisted and nothing is redelivered.
"""

import logging
import threading
from datetime import timedelta

from django.conf import settings
from django.db import close_old_connections
from django.utils import timezone

from push.composer import NotificationEvent, NotificationType
from push.services import notify_quietly

logger = logging.getLogger(__name__)

REMINDER_WINDOW = timedelta(hours=24)


class DueReminders:
    """Registro de timers pendientes, uno por tarea."""

    def __init__(self, timer_factory=threading.Timer):
        self._timer_factory = timer_factory
        self._timers = {}
        self._lock = threading.Lock()

    def schedule(self, task, now=None) -> bool:
        """
        Programa el aviso "task_due" si vence dentro de las proximas 24h.
        Reprogramar una tarea reemplaza su timer anterior.
        """
        if not getattr(settings, "PUSH_DUE_REMINDERS", True):
            return False

        now = now or timezone.now()
        delay = (task.due_date - now).total_seconds()
        if not 0 < delay < REMINDER_WINDOW.total_seconds():
            return False

        timer = self._timer_factory(delay, self._run, args=(task.pk,))
        timer.daemon = True

        with self._lock:
            previous = self._timers.pop(task.pk, None)
            self._timers[task.pk] = timer
        if previous is not None:
            previous.cancel()

        timer.start()
        logger.info("Due reminder for task %s scheduled in %.0fs", task.pk, delay)
        return True

    def cancel(self, task_id) -> bool:
        with self._lock:
            timer = self._timers.pop(task_id, None)
        if timer is None:
            return False
        timer.cancel()
        logger.info("Due reminder for task %s cancelled", task_id)
        return True

    def pending(self) -> list:
        with self._lock:
            return list(self._timers)

    def cancel_all(self):
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def fire(self, task_id):
        """Envia el aviso si la tarea sigue existiendo y no esta completada."""
        from .models import Task

        with self._lock:
            self._timers.pop(task_id, None)

        task = Task.objects.filter(pk=task_id).first()
        if task is None or task.completed:
            logger.info("Skipping due reminder for task %s (deleted or completed)", task_id)
            return None

        return notify_quietly(NotificationEvent.for_task(NotificationType.TASK_DUE, task))

    def _run(self, task_id):
        # Hilo del timer: fuera del ciclo request/response
        try:
            self.fire(task_id)
        finally:
            close_old_connections()


due_reminders = DueReminders()
