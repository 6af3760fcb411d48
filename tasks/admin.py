from django.contrib import admin

from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("title", "priority", "due_date", "completed", "completed_at")
    list_filter = ("completed", "priority")
    search_fields = ("title", "description")
    readonly_fields = ("completed_at", "created_at", "updated_at")
