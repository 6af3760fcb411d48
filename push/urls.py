from django.urls import path

from . import views

app_name = "push"

urlpatterns = [
    path("vapid-public-key/", views.vapid_public_key_view, name="vapid_public_key"),
    path("subscribe/", views.subscribe_view, name="subscribe"),
    path("unsubscribe/", views.unsubscribe_view, name="unsubscribe"),
    path("unsubscribe-all/", views.unsubscribe_all_view, name="unsubscribe_all"),
    path("notify/", views.notify_view, name="notify"),
]
