from django.urls import path

from . import views

app_name = "tasks"

urlpatterns = [
    path("", views.tasks_view, name="list"),
    path("stats/", views.task_stats_view, name="stats"),
    path("<int:task_id>/", views.task_detail_view, name="detail"),
    path("<int:task_id>/complete/", views.task_complete_view, name="complete"),
]
