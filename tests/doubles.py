"""Test doubles for timers and the push service."""
import os
from unittest.mock import Mock

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pywebpush import WebPushException

from push.vapid import b64url


class FakeTimer:
    """Stand-in for threading.Timer that never runs on its own."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = tuple(args or ())
        self.kwargs = dict(kwargs or {})
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True


def _status_for(endpoint):
    for code in (404, 410, 500):
        if endpoint.endswith(f"/{code}"):
            return code
    return 201


def fake_webpush(subscription_info, **kwargs):
    """Push service double: endpoints ending in /404, /410 or /500 fail with that status."""
    code = _status_for(subscription_info["endpoint"])
    if code != 201:
        raise WebPushException(f"Push failed: {code}", response=Mock(status_code=code))
    return Mock(status_code=201)


def fake_push_service_post(endpoint, *args, **kwargs):
    """Replacement for requests.post as called by pywebpush, same status rules as fake_webpush."""
    code = _status_for(endpoint)
    return Mock(status_code=code, reason="Created" if code == 201 else "Error", text="")


def browser_keys():
    """p256dh/auth as a browser's PushManager.subscribe() would produce them."""
    public_key = ec.generate_private_key(ec.SECP256R1()).public_key()
    p256dh = public_key.public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    return {"p256dh": b64url(p256dh), "auth": b64url(os.urandom(16))}
