from django.urls import path
from . import views

urlpatterns = [
    path("verify-code", views.verify_code),
    path("check-username", views.check_username),
    path("create-user", views.create_user),
    path("logout", views.logout),
]
