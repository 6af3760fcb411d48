"""Exceptions for push subscriptions and notifications."""


class PushError(Exception):
    """Base exception for push errors."""
    pass


class InvalidSubscription(PushError):
    """Subscription descriptor is missing endpoint or encryption keys."""
    pass


class EndpointRequired(PushError):
    """An operation on a single subscription was called without an endpoint."""

    def __init__(self, message: str = "endpoint is required"):
        super().__init__(message)


class MissingTaskContext(PushError):
    """A task-scoped notification type was composed without a task reference."""

    def __init__(self, notification_type: str):
        self.notification_type = notification_type
        super().__init__(f"Task data missing for {notification_type} notification")
