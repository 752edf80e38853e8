from django.apps import AppConfig
from django.conf import settings


class CleanupConfig(AppConfig):
    name = "apps.cleanup"
    label = "cleanup"
    verbose_name = "过期清理"

    def ready(self):
        if getattr(settings, "CHAT_SWEEPS_ENABLED", False):
            from .scheduler import get_scheduler
            get_scheduler().start()
