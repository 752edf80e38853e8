from django.urls import path
from . import views

urlpatterns = [
    path("join-p2p", views.join_p2p),
    path("check-p2p/<str:username>", views.check_p2p),
    path("leave-p2p", views.leave_p2p),
    path("send-p2p-message", views.send_p2p_message),
    path("get-p2p-messages/<str:username>/<str:partner>", views.get_p2p_messages),
    path("queue-stats", views.queue_stats),
]
