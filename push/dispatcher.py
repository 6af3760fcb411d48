"""Push dispatcher: fan a payload out to every active subscription via pywebpush."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from django.apps import apps
from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone
from py_vapid import Vapid, VapidException
from pywebpush import webpush, WebPushException

from . import store
from .composer import NotificationPayload
from .vapid import load_signer

logger = logging.getLogger(__name__)

# Respuestas del servicio push que indican que el endpoint ya no existe
TERMINAL_STATUS_CODES = frozenset({404, 410})


@dataclass(frozen=True)
class VapidConfig:
    """Configuracion del canal de entrega (VAPID + opciones de envio)."""

    private_key: str
    public_key: str = ""
    subject: str = "mailto:admin@task-manager.local"
    ttl: int = 60
    content_encoding: str = "aes128gcm"
    max_workers: int = 8

    @classmethod
    def from_settings(cls) -> "VapidConfig":
        return cls(
            private_key=getattr(settings, "VAPID_PRIVATE_KEY", "") or "",
            public_key=getattr(settings, "VAPID_PUBLIC_KEY", "") or "",
            subject=(getattr(settings, "VAPID_SUBJECT", "") or cls.subject).strip(),
            ttl=int(getattr(settings, "PUSH_TTL", cls.ttl)),
            content_encoding=getattr(settings, "PUSH_CONTENT_ENCODING", cls.content_encoding),
            max_workers=max(1, int(getattr(settings, "PUSH_MAX_WORKERS", cls.max_workers))),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.private_key and self.subject)

    @property
    def claims(self) -> dict:
        return {"sub": self.subject}


@dataclass(frozen=True)
class DeliveryOutcome:
    subscription_id: int
    endpoint: str
    ok: bool
    status_code: Optional[int] = None
    error: str = ""

    @property
    def is_terminal(self) -> bool:
        return not self.ok and self.status_code in TERMINAL_STATUS_CODES


@dataclass(frozen=True)
class DispatchResult:
    delivered: int
    total: int

    @property
    def success(self) -> bool:
        return self.delivered > 0

    def to_dict(self) -> dict:
        return {"success": self.success, "sent": self.delivered, "total": self.total}


class PushDispatcher:
    """
    Envia un payload a todas las suscripciones activas.

    Cada entrega es independiente: un fallo en un endpoint nunca aborta
    el resto. El estado de cada suscripcion se actualiza solo cuando su
    propio intento termina:

    - exito -> last_used
    - 404/410 -> active=False (endpoint muerto)
    - cualquier otro error -> sigue activa (fallo transitorio)
    """

    def __init__(self, config: VapidConfig):
        self.config = config
        self._signer: Optional[Vapid] = None

    @property
    def signer(self) -> Vapid:
        """Firmante VAPID, cargado una sola vez desde config.private_key."""
        if self._signer is None:
            self._signer = load_signer(self.config.private_key)
        return self._signer

    def dispatch(self, payload: NotificationPayload) -> DispatchResult:
        subscriptions = store.find_active()
        if not subscriptions:
            logger.info("No active subscriptions; notification %r not sent", payload.tag)
            return DispatchResult(delivered=0, total=0)

        if not self.config.is_configured:
            logger.error(
                "VAPID private key/subject not configured; skipping %s subscriptions",
                len(subscriptions),
            )
            return DispatchResult(delivered=0, total=len(subscriptions))

        # Se carga aqui, antes de repartir el trabajo entre hilos
        try:
            signer = self.signer
        except (ValueError, TypeError, VapidException) as ex:
            logger.error("Invalid VAPID private key; skipping %s subscriptions: %s", len(subscriptions), ex)
            return DispatchResult(delivered=0, total=len(subscriptions))

        data = payload.to_json()
        workers = min(self.config.max_workers, len(subscriptions))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="webpush") as pool:
            outcomes = list(pool.map(lambda s: self._deliver(s, data, signer), subscriptions))

        by_id = {s.pk: s for s in subscriptions}
        delivered = 0
        for outcome in outcomes:
            subscription = by_id[outcome.subscription_id]
            try:
                self._reconcile(subscription, outcome)
            except DatabaseError:
                logger.exception("Could not update subscription %s", subscription.short_endpoint)
            if outcome.ok:
                delivered += 1

        logger.info(
            "Notification %r delivered to %s/%s subscriptions",
            payload.tag,
            delivered,
            len(subscriptions),
        )
        return DispatchResult(delivered=delivered, total=len(subscriptions))

    def _deliver(self, subscription, data: str, signer: Vapid) -> DeliveryOutcome:
        """Un intento de entrega. No toca la base de datos."""
        try:
            response = webpush(
                subscription_info=subscription.subscription_info(),
                data=data,
                vapid_private_key=signer,
                vapid_claims=dict(self.config.claims),
                content_encoding=self.config.content_encoding,
                ttl=self.config.ttl,
            )
        except WebPushException as ex:
            status = getattr(getattr(ex, "response", None), "status_code", None)
            logger.warning(
                "WebPush error for %s: %s (status=%s)",
                subscription.short_endpoint,
                ex,
                status,
            )
            return DeliveryOutcome(subscription.pk, subscription.endpoint, False, status, str(ex))
        except Exception as ex:  # red caida, clave invalida, etc.
            logger.error("Unexpected error sending push to %s: %s", subscription.short_endpoint, ex)
            return DeliveryOutcome(subscription.pk, subscription.endpoint, False, None, str(ex))

        status = getattr(response, "status_code", None)
        return DeliveryOutcome(
            subscription.pk,
            subscription.endpoint,
            True,
            status if isinstance(status, int) else None,
        )

    def _reconcile(self, subscription, outcome: DeliveryOutcome):
        subscription.last_used = timezone.now()
        update_fields = ["last_used", "updated_at"]

        if outcome.is_terminal:
            subscription.active = False
            update_fields.append("active")
            logger.info(
                "Deactivating subscription %s due to status code %s",
                subscription.short_endpoint,
                outcome.status_code,
            )

        subscription.save(update_fields=update_fields)


def get_dispatcher() -> PushDispatcher:
    """Dispatcher construido por PushConfig.ready()."""
    return apps.get_app_config("push").dispatcher
