from django.apps import AppConfig


class PushConfig(AppConfig):
    name = "push"
    verbose_name = "Push notifications"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from .dispatcher import PushDispatcher, VapidConfig

        # Canal de entrega construido una sola vez al arrancar
        self.dispatcher = PushDispatcher(VapidConfig.from_settings())
