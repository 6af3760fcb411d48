# backend/urls.py
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # API JSON
    path("api/tasks/", include("tasks.urls")),
    path("api/push/", include("push.urls")),

    # PWA: shell, service worker y manifest
    path("", include("pwa.urls")),
]
