"""Notify: compose an event and dispatch it to every active subscription."""

import logging

from .composer import NotificationEvent, compose
from .dispatcher import DispatchResult, PushDispatcher, get_dispatcher

logger = logging.getLogger(__name__)


def send_notification(event: NotificationEvent, dispatcher: PushDispatcher = None) -> DispatchResult:
    """
    Raises:
        MissingTaskContext: el evento es de tarea pero no trae la tarea.
    """
    payload = compose(event)
    dispatcher = dispatcher or get_dispatcher()
    return dispatcher.dispatch(payload)


def notify_quietly(event: NotificationEvent, dispatcher: PushDispatcher = None):
    """
    Variante para efectos secundarios de mutaciones de tareas: un fallo
    al notificar nunca debe tumbar la operacion que lo origino.
    """
    try:
        return send_notification(event, dispatcher=dispatcher)
    except Exception:
        logger.exception("Failed to send %s notification", event.type)
        return None
