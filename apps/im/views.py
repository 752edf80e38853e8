"""
话题群聊：创建、列表、加入/退出、群消息收发
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from apps.system.errors import chat_api
from . import groups


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def create_group(request):
    """创建群聊。body: { "creator": "alice", "topic": "chess", "description": "..." }，创建者自动入群"""
    return groups.create_group(
        request.data.get("creator") or request.data.get("username"),
        request.data.get("topic"),
        request.data.get("description"),
    )


@api_view(["GET"])
@permission_classes([AllowAny])
@chat_api
def group_list(request):
    """未过期的群，?search=&limit="""
    return {"list": groups.list_groups(request.GET.get("search"), request.GET.get("limit"))}


@api_view(["GET"])
@permission_classes([AllowAny])
@chat_api
def group_info(request, group_id):
    return groups.get_group(group_id)


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def join_group(request, group_id):
    return groups.join_group(request.data.get("username"), group_id)


@api_view(["POST"])
@permission_classes([AllowAny])
@chat_api
def leave_group(request, group_id):
    return groups.leave_group(request.data.get("username"), group_id)


@api_view(["GET", "POST"])
@permission_classes([AllowAny])
@chat_api
def group_messages(request, group_id):
    """GET ?username= 拉取最近消息；POST { "sender": "...", "message": "..." } 发送"""
    if request.method == "POST":
        msg = groups.send_group_message(
            request.data.get("sender") or request.data.get("username"),
            group_id,
            request.data.get("message"),
        )
        return {"success": True, "message": msg}
    return groups.get_group_messages(request.GET.get("username"), group_id)
