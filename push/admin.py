from django.contrib import admin

from .models import PushSubscription


@admin.register(PushSubscription)
class PushSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("short_endpoint", "active", "last_used", "created_at")
    list_filter = ("active",)
    search_fields = ("endpoint", "user_agent")
    readonly_fields = ("created_at", "updated_at", "last_used")
