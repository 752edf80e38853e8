from django.contrib import admin
from django.urls import path, include
from apps.system.views import health

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health", health),
    path("api/", include("apps.account.urls")),
    path("api/", include("apps.p2p.urls")),
    path("api/", include("apps.im.urls")),
]
