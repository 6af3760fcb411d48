from django.urls import path

from . import views

app_name = "pwa"

urlpatterns = [
    path("", views.index_view, name="index"),
    # Destinos de click de las notificaciones; el shell resuelve la vista
    path("tasks", views.index_view, name="task_list"),
    path("tasks/<int:task_id>", views.index_view, name="task_detail"),
    path("sw.js", views.sw_js_view, name="sw_js"),
    path("manifest.json", views.manifest_json_view, name="manifest"),
]
