# tasks/views.py
import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from . import services
from .exceptions import TaskNotFound, TaskServiceError, TaskValidationError

logger = logging.getLogger(__name__)


def _json_body(request):
    try:
        data = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def task_errors(view):
    """Traduce las excepciones del servicio a respuestas JSON."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except TaskValidationError as ex:
            return JsonResponse({"ok": False, "error": str(ex), "errors": ex.errors}, status=400)
        except TaskNotFound as ex:
            return JsonResponse({"ok": False, "error": str(ex)}, status=404)
        except TaskServiceError as ex:
            return JsonResponse({"ok": False, "error": str(ex)}, status=500)

    return wrapper


# -------------------
# Lista / Crear
# -------------------
@csrf_exempt
@require_http_methods(["GET", "POST"])
@task_errors
def tasks_view(request):
    if request.method == "GET":
        tasks = [services.serialize_task(t) for t in services.list_tasks()]
        return JsonResponse({"tasks": tasks})

    data = _json_body(request)
    if data is None:
        return JsonResponse({"ok": False, "error": "Invalid JSON"}, status=400)

    task = services.create_task(data)
    return JsonResponse(services.serialize_task(task), status=201)


# -------------------
# Detalle / Editar / Eliminar
# -------------------
@csrf_exempt
@require_http_methods(["GET", "PATCH", "DELETE"])
@task_errors
def task_detail_view(request, task_id):
    if request.method == "GET":
        return JsonResponse(services.serialize_task(services.get_task(task_id)))

    if request.method == "DELETE":
        services.delete_task(task_id)
        return JsonResponse({"ok": True})

    data = _json_body(request)
    if data is None:
        return JsonResponse({"ok": False, "error": "Invalid JSON"}, status=400)

    task = services.update_task(task_id, data)
    return JsonResponse(services.serialize_task(task))


@csrf_exempt
@require_http_methods(["POST"])
@task_errors
def task_complete_view(request, task_id):
    task = services.complete_task(task_id)
    return JsonResponse({"ok": True, "task": services.serialize_task(task)})


@require_http_methods(["GET"])
@task_errors
def task_stats_view(request):
    return JsonResponse(services.task_stats())
