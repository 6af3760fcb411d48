# push/views.py
import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from . import store
from .composer import NotificationEvent
from .exceptions import EndpointRequired, InvalidSubscription, MissingTaskContext
from .services import send_notification

logger = logging.getLogger(__name__)


def _json_body(request):
    """Devuelve el cuerpo JSON como dict, o None si no es JSON valido."""
    try:
        data = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _bad_request(error: str):
    return JsonResponse({"ok": False, "error": error}, status=400)


# ==========================================================
# ✅ PUSH: Public Key + Suscribir / Desuscribir + Notificar
# ==========================================================
@require_http_methods(["GET"])
def vapid_public_key_view(request):
    key = store.clean_str(getattr(settings, "VAPID_PUBLIC_KEY", ""))
    if not key:
        return JsonResponse({"publicKey": "", "warning": "VAPID_PUBLIC_KEY is empty"}, status=200)
    return JsonResponse({"publicKey": key})


@csrf_exempt
@require_http_methods(["POST"])
def subscribe_view(request):
    data = _json_body(request)
    if data is None:
        return _bad_request("Invalid JSON")

    try:
        norm = store.normalize_subscription_payload(data)
    except InvalidSubscription as ex:
        return _bad_request(str(ex))

    user_agent = norm["user_agent"] or request.META.get("HTTP_USER_AGENT", "") or ""

    subscription, created = store.upsert_by_endpoint(
        norm["endpoint"],
        norm["keys"],
        active=True,
        user_agent=user_agent,
    )

    return JsonResponse(
        {"ok": True, "created": created, "id": subscription.id},
        status=201 if created else 200,
    )


@csrf_exempt
@require_http_methods(["POST"])
def unsubscribe_view(request):
    """
    Desactiva UNA suscripcion. Sin endpoint -> 400, nunca "todas".
    """
    data = _json_body(request)
    if data is None:
        return _bad_request("Invalid JSON")

    endpoint = data.get("endpoint")
    if not isinstance(endpoint, str):
        endpoint = ""

    try:
        found = store.deactivate(endpoint)
    except EndpointRequired as ex:
        return _bad_request(str(ex))

    return JsonResponse({"ok": True, "found": found})


@csrf_exempt
@require_http_methods(["POST"])
def unsubscribe_all_view(request):
    """Operacion masiva y explicita: exige {"confirm": true}."""
    data = _json_body(request)
    if data is None:
        return _bad_request("Invalid JSON")

    if data.get("confirm") is not True:
        return _bad_request('Deactivating all subscriptions requires {"confirm": true}')

    count = store.deactivate_all()
    return JsonResponse({"ok": True, "deactivated": count})


@csrf_exempt
@require_http_methods(["POST"])
def notify_view(request):
    data = _json_body(request)
    if data is None:
        return _bad_request("Invalid JSON")

    event = NotificationEvent.from_dict(data)
    if not event.type:
        return _bad_request("type is required")

    try:
        result = send_notification(event)
    except MissingTaskContext as ex:
        return _bad_request(str(ex))

    return JsonResponse(result.to_dict())
