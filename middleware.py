from django.http import JsonResponse


class HealthzMiddleware:
    """
    Responde /healthz y /healthz/ sin tocar urls.py ni la base de datos.
    """

    HEALTH_PATHS = {"/healthz", "/healthz/"}

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path in self.HEALTH_PATHS:
            return JsonResponse({"ok": True, "service": "task-manager-pwa"})
        return self.get_response(request)
