from django.apps import AppConfig


class P2PConfig(AppConfig):
    name = "apps.p2p"
    label = "p2p"
    verbose_name = "一对一匿名聊天"
