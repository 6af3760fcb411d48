# pwa/views.py
import json

from django.http import HttpResponse, JsonResponse
from django.shortcuts import render
from django.template.loader import render_to_string
from django.views.decorators.http import require_http_methods

from .worker import WorkerConfig


def _no_store(resp):
    resp["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    resp["Pragma"] = "no-cache"
    resp["Expires"] = "0"
    return resp


# -------------------
# ✅ /sw.js (scope /)
# -------------------
@require_http_methods(["GET"])
def sw_js_view(request):
    """
    Sirve el service worker desde la raiz para controlar todo el sitio.
    Se renderiza con las mismas constantes que pwa.worker.WorkerConfig.
    """
    config = WorkerConfig.from_settings()
    content = render_to_string(
        "pwa/sw.js",
        {"worker_config": json.dumps(config.to_js(), ensure_ascii=False)},
    )

    resp = HttpResponse(content, content_type="application/javascript; charset=utf-8")
    resp["Service-Worker-Allowed"] = "/"
    return _no_store(resp)


# -------------------
# ✅ Manifest
# -------------------
@require_http_methods(["GET"])
def manifest_json_view(request):
    config = WorkerConfig.from_settings()
    data = {
        "name": "Task Manager PWA",
        "short_name": "Tasks",
        "description": "A Progressive Web App with push notifications for managing tasks.",
        "id": "/",
        "start_url": "/",
        "scope": "/",
        "display": "standalone",
        "background_color": "#ffffff",
        "theme_color": "#000000",
        "orientation": "portrait-primary",
        "icons": [
            {
                "src": config.default_badge,
                "sizes": "96x96",
                "type": "image/png",
            },
            {
                "src": config.default_icon,
                "sizes": "192x192",
                "type": "image/png",
                "purpose": "maskable",
            },
        ],
    }

    return _no_store(JsonResponse(data))


# -------------------
# App shell (documento raiz precacheado)
# -------------------
@require_http_methods(["GET"])
def index_view(request, task_id=None):
    return render(request, "pwa/index.html")
