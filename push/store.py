"""Subscription store: upsert by endpoint and soft deactivation."""

import logging

from django.utils import timezone

from .exceptions import EndpointRequired, InvalidSubscription
from .models import PushSubscription

logger = logging.getLogger(__name__)


def clean_str(value) -> str:
    return (value or "").replace("\n", "").replace("\r", "").strip()


def normalize_subscription_payload(data) -> dict:
    """
    Acepta:
    - PushSubscription.toJSON() del navegador: {endpoint, keys:{p256dh, auth}}
    - el mismo dict envuelto en {subscription: {...}}

    Devuelve {endpoint, keys:{p256dh, auth}, user_agent} o lanza InvalidSubscription.
    """
    if not isinstance(data, dict):
        raise InvalidSubscription("Subscription must be a JSON object")

    user_agent = clean_str(data.get("userAgent") or data.get("user_agent"))

    if isinstance(data.get("subscription"), dict):
        data = data["subscription"]

    endpoint = data.get("endpoint")
    keys = data.get("keys") if isinstance(data.get("keys"), dict) else {}

    endpoint = clean_str(endpoint) if isinstance(endpoint, str) else ""
    p256dh = clean_str(keys.get("p256dh")) if isinstance(keys.get("p256dh"), str) else ""
    auth = clean_str(keys.get("auth")) if isinstance(keys.get("auth"), str) else ""

    missing = [
        name
        for name, value in (("endpoint", endpoint), ("keys.p256dh", p256dh), ("keys.auth", auth))
        if not value
    ]
    if missing:
        raise InvalidSubscription(f"Incomplete subscription: missing {', '.join(missing)}")

    return {
        "endpoint": endpoint,
        "keys": {"p256dh": p256dh, "auth": auth},
        "user_agent": user_agent,
    }


def upsert_by_endpoint(endpoint: str, keys: dict, active: bool = True, user_agent: str = ""):
    """
    Crea o renueva la suscripcion identificada por ``endpoint``.

    Returns:
        (subscription, created)
    """
    endpoint = clean_str(endpoint)
    if not endpoint:
        raise EndpointRequired()

    p256dh = clean_str((keys or {}).get("p256dh"))
    auth = clean_str((keys or {}).get("auth"))
    if not p256dh or not auth:
        raise InvalidSubscription("Both p256dh and auth keys are required")

    defaults = {
        "p256dh": p256dh,
        "auth": auth,
        "active": active,
        "last_used": timezone.now(),
    }
    if user_agent:
        defaults["user_agent"] = user_agent[:512]

    subscription, created = PushSubscription.objects.update_or_create(
        endpoint=endpoint,
        defaults=defaults,
    )
    logger.info(
        "Subscription %s: %s",
        "created" if created else "renewed",
        subscription.short_endpoint,
    )
    return subscription, created


def deactivate(endpoint: str) -> bool:
    """
    Desactiva una sola suscripcion. Nunca se amplia a "todas":
    sin endpoint es un error del llamador.

    Returns:
        True si existia una suscripcion con ese endpoint.
    """
    endpoint = clean_str(endpoint) if isinstance(endpoint, str) else ""
    if not endpoint:
        raise EndpointRequired("endpoint is required to unsubscribe")

    updated = PushSubscription.objects.filter(endpoint=endpoint).update(
        active=False,
        updated_at=timezone.now(),
    )
    if not updated:
        logger.info("Unsubscribe for unknown endpoint: %s...", endpoint[:50])
    return bool(updated)


def deactivate_all() -> int:
    """Desactiva TODAS las suscripciones. Solo se llama de forma explicita."""
    count = PushSubscription.objects.filter(active=True).update(
        active=False,
        updated_at=timezone.now(),
    )
    logger.warning("Deactivated ALL push subscriptions (%s affected)", count)
    return count


def find_active() -> list:
    return list(PushSubscription.objects.filter(active=True).order_by("created_at", "id"))
