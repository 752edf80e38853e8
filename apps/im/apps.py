from django.apps import AppConfig


class ImConfig(AppConfig):
    name = "apps.im"
    label = "im"
    verbose_name = "话题群聊"
