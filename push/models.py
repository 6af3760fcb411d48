from django.db import models
from django.utils import timezone


class PushSubscription(models.Model):
    endpoint = models.TextField(unique=True)

    p256dh = models.TextField()
    auth = models.TextField()

    user_agent = models.TextField(blank=True, default="")

    active = models.BooleanField(default=True, db_index=True)
    last_used = models.DateTimeField(default=timezone.now)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "push_subscriptions"
        ordering = ["-created_at"]
        verbose_name = "Push subscription"
        verbose_name_plural = "Push subscriptions"

    def __str__(self):
        estado = "active" if self.active else "inactive"
        return f"{self.short_endpoint} ({estado})"

    @property
    def short_endpoint(self) -> str:
        return self.endpoint[:50] + ("..." if len(self.endpoint) > 50 else "")

    def subscription_info(self) -> dict:
        """Formato que espera pywebpush."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }
