"""Shared fixtures for push, tasks and pwa tests."""
from datetime import timedelta
from unittest.mock import Mock

import pytest
from django.utils import timezone

from push.dispatcher import PushDispatcher, VapidConfig
from push.models import PushSubscription
from tasks.models import Task
from tasks.reminders import DueReminders
from tests.doubles import FakeTimer


@pytest.fixture
def make_subscription(db):
    counter = {"n": 0}

    def _make(endpoint=None, active=True, **extra):
        counter["n"] += 1
        endpoint = endpoint or f"https://push.example.com/send/sub-{counter['n']}"
        return PushSubscription.objects.create(
            endpoint=endpoint,
            p256dh=extra.pop("p256dh", f"p256dh-{counter['n']}"),
            auth=extra.pop("auth", f"auth-{counter['n']}"),
            active=active,
            **extra,
        )

    return _make


@pytest.fixture
def make_task(db):
    def _make(title="Buy milk", due_in=timedelta(hours=2), **extra):
        return Task.objects.create(
            title=title,
            due_date=timezone.now() + due_in,
            **extra,
        )

    return _make


@pytest.fixture
def vapid_config(settings):
    return VapidConfig(
        private_key=settings.VAPID_PRIVATE_KEY,
        public_key="BTestPublicKey",
        subject="mailto:test@example.com",
        ttl=60,
        max_workers=2,
    )


@pytest.fixture
def dispatcher(vapid_config):
    return PushDispatcher(vapid_config)


@pytest.fixture
def mock_dispatcher():
    """Dispatcher double: records payloads instead of sending them."""
    return Mock(spec=PushDispatcher)


@pytest.fixture
def reminders(settings):
    settings.PUSH_DUE_REMINDERS = True
    return DueReminders(timer_factory=FakeTimer)
