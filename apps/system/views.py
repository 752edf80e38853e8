from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.cleanup.scheduler import get_scheduler


@api_view(["GET"])
@permission_classes([AllowAny])
def health(request):
    """健康检查：数据库、缓存、定时清理线程"""
    from django.db import connection
    from django.core.cache import cache

    result = {"status": "UP", "database": "DOWN", "cache": "DOWN", "sweeps": "STOPPED"}
    try:
        connection.ensure_connection()
        result["database"] = "UP"
    except Exception as e:
        result["database"] = f"DOWN: {e}"
    try:
        cache.set("health_check", 1, 5)
        cache.delete("health_check")
        result["cache"] = "UP"
    except Exception as e:
        result["cache"] = f"DOWN: {e}"
    if get_scheduler().running:
        result["sweeps"] = "RUNNING"
    return Response(result)
