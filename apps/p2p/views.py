"""
匿名一对一聊天：加入匹配/轮询状态/离开，消息收发，队列统计
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from apps.system.errors import chat_api
from . import matching, messages


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def join_p2p(request):
    """加入匹配。body: { "username": "alice" }，返回 matched + partner 或 waiting"""
    return matching.join(request.data.get("username"))


@api_view(["GET"])
@permission_classes([AllowAny])
@chat_api
def check_p2p(request, username):
    """轮询匹配结果"""
    return matching.check(username)


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def leave_p2p(request):
    ended = matching.leave(request.data.get("username"))
    return {"success": True, "ended": ended}


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def send_p2p_message(request):
    """body: { "sender": "alice", "receiver": "bob", "message": "..." }"""
    msg = messages.send_message(
        request.data.get("sender"),
        request.data.get("receiver"),
        request.data.get("message"),
    )
    return {"success": True, "message": msg}


@api_view(["GET"])
@permission_classes([AllowAny])
@chat_api
def get_p2p_messages(request, username, partner):
    return messages.get_messages(username, partner)


@api_view(["GET"])
@permission_classes([AllowAny])
@chat_api
def queue_stats(request):
    return matching.queue_stats()
