# push/context_processors.py
from django.conf import settings

from .store import clean_str


def vapid_public_key(request):
    """Inyecta la clave publica (base64url) para PushManager.subscribe()."""
    return {"VAPID_PUBLIC_KEY": clean_str(getattr(settings, "VAPID_PUBLIC_KEY", ""))}
