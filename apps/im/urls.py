from django.urls import path
from . import views

urlpatterns = [
    path("create-group", views.create_group),
    path("groups", views.group_list),
    path("groups/<int:group_id>", views.group_info),
    path("groups/<int:group_id>/join", views.join_group),
    path("groups/<int:group_id>/leave", views.leave_group),
    path("groups/<int:group_id>/messages", views.group_messages),
]
