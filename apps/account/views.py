"""
匿名身份：口令校验、用户名检查/创建、退出（退出时同步清理该用户的聊天数据）
"""
import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from apps.cleanup.retention import cleanup_user_preserving_groups
from apps.system.errors import chat_api
from . import identity, presence

logger = logging.getLogger(__name__)


def _user_data(user):
    return {
        "user_id": user.id,
        "username": user.username,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def verify_code(request):
    """body: { "code": "ABCD1234" }"""
    identity.verify_code(request.data.get("code"))
    return {"valid": True}


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def check_username(request):
    """body: { "username": "alice" }，返回是否可用"""
    return {"available": identity.username_available(request.data.get("username"))}


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def create_user(request):
    user = identity.create_user(request.data.get("username"))
    logger.info("新用户 %s", user.username)
    return {"user": _user_data(user)}


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def logout(request):
    """退出：结束连接、删除消息与成员关系，本人创建的群延长保留并解除归属"""
    username = presence.normalize_username(request.data.get("username"))
    summary = cleanup_user_preserving_groups(username)
    return {"cleanup": summary}
