"""
话题群聊：创建/列表/加入/离开，群消息只保留最近 50 条。

写入时先淘汰最旧的消息再插入，保证新消息正好是第 50 条；定时任务的全局裁剪只是兜底。
member_count / message_count 是冗余计数，统一由 recount_group 全量重算。
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError
from django.db.models import Q
from django.utils import timezone

from apps.account import presence
from apps.system.errors import ForbiddenError, NotFoundError, ValidationError, require_text
from .models import ChatGroup, GroupMember, GroupMessage

logger = logging.getLogger(__name__)

TOPIC_MIN, TOPIC_MAX = 3, 50
DESCRIPTION_MAX = 500
MAX_MESSAGE_LENGTH = 2000
DEFAULT_LIMIT, MAX_LIMIT = 20, 100


def _window():
    return settings.CHAT["GROUP_MESSAGE_WINDOW"]


def group_data(g):
    return {
        "id": g.id,
        "groupId": g.id,
        "topic": g.topic,
        "description": g.description,
        "creator": g.creator,
        "created_at": g.created_at.isoformat() if g.created_at else None,
        "expires_at": g.expires_at.isoformat() if g.expires_at else None,
        "member_count": g.member_count,
        "message_count": g.message_count,
    }


def _message_data(m):
    return {
        "id": m.id,
        "groupId": m.group_id,
        "sender": m.sender,
        "message": m.message,
        "sent_at": m.sent_at.isoformat() if m.sent_at else None,
    }


def live_group(group_id, now=None):
    """未过期的群，不存在或已过期都按不存在处理"""
    now = now or timezone.now()
    g = ChatGroup.objects.filter(id=group_id, expires_at__gt=now).first()
    if g is None:
        raise NotFoundError("群聊不存在或已过期")
    return g


def is_member(group_id, username):
    return GroupMember.objects.filter(group_id=group_id, username=username).exists()


def recount_group(group_id, now=None):
    """全量重算成员数与消息数"""
    now = now or timezone.now()
    member_count = GroupMember.objects.filter(group_id=group_id).count()
    message_count = GroupMessage.objects.filter(group_id=group_id, expires_at__gt=now).count()
    ChatGroup.objects.filter(id=group_id).update(member_count=member_count, message_count=message_count)
    return member_count, message_count


def trim_group_messages(group_id, keep=None):
    """只保留最近 keep 条，返回删除条数"""
    keep = _window() if keep is None else keep
    stale_ids = list(
        GroupMessage.objects.filter(group_id=group_id)
        .order_by("-sent_at", "-id")
        .values_list("id", flat=True)[keep:]
    )
    if not stale_ids:
        return 0
    deleted, _ = GroupMessage.objects.filter(id__in=stale_ids).delete()
    return deleted


def _evict_for_insert(group_id, now):
    """插入前腾位置：已过期的直接删，未过期的达到上限就淘汰最旧的 count-49 条"""
    GroupMessage.objects.filter(group_id=group_id, expires_at__lte=now).delete()
    live = GroupMessage.objects.filter(group_id=group_id, expires_at__gt=now)
    count = live.count()
    window = _window()
    if count < window:
        return 0
    oldest_ids = list(live.order_by("sent_at", "id").values_list("id", flat=True)[: count - window + 1])
    deleted, _ = GroupMessage.objects.filter(id__in=oldest_ids).delete()
    return deleted


def create_group(creator, topic, description=None, now=None):
    creator = presence.normalize_username(creator, "creator")
    topic = (topic or "").strip()
    if not TOPIC_MIN <= len(topic) <= TOPIC_MAX:
        raise ValidationError(f"话题长度须在 {TOPIC_MIN}-{TOPIC_MAX} 个字符之间")
    description = (description or "").strip()[:DESCRIPTION_MAX] or None
    now = now or timezone.now()

    presence.touch(creator, now)
    g = ChatGroup.objects.create(
        topic=topic,
        description=description,
        creator=creator,
        expires_at=now + timedelta(seconds=settings.CHAT["GROUP_TTL"]),
    )
    GroupMember.objects.create(group_id=g.id, username=creator)
    recount_group(g.id, now)
    g.refresh_from_db()
    logger.info("%s 创建群聊 %s「%s」", creator, g.id, topic)
    return group_data(g)


def list_groups(search=None, limit=None, now=None):
    """未过期的群，按创建时间倒序；search 不区分大小写匹配话题或简介"""
    now = now or timezone.now()
    try:
        limit = int(limit) if limit not in (None, "") else DEFAULT_LIMIT
    except (TypeError, ValueError):
        raise ValidationError("limit 须为整数")
    limit = min(MAX_LIMIT, max(1, limit))

    qs = ChatGroup.objects.filter(expires_at__gt=now)
    search = (search or "").strip()
    if search:
        qs = qs.filter(Q(topic__icontains=search) | Q(description__icontains=search))
    return [group_data(g) for g in qs.order_by("-created_at", "-id")[:limit]]


def get_group(group_id, now=None):
    return group_data(live_group(group_id, now))


def join_group(username, group_id, now=None):
    """已是成员直接成功；否则群必须未过期"""
    username = presence.normalize_username(username)
    now = now or timezone.now()
    presence.touch(username, now)
    if is_member(group_id, username):
        g = ChatGroup.objects.filter(id=group_id).first()
        return {"joined": False, "group": group_data(g) if g else None}

    g = live_group(group_id, now)
    try:
        GroupMember.objects.create(group_id=g.id, username=username)
    except IntegrityError:
        # 并发重复加入，按已是成员处理
        pass
    recount_group(g.id, now)
    g.refresh_from_db()
    return {"joined": True, "group": group_data(g)}


def leave_group(username, group_id, now=None):
    """退出群聊；群即使没人了也保留到自身过期"""
    username = presence.normalize_username(username)
    deleted, _ = GroupMember.objects.filter(group_id=group_id, username=username).delete()
    recount_group(group_id, now)
    return {"left": bool(deleted)}


def send_group_message(sender, group_id, text, now=None):
    sender = presence.normalize_username(sender, "sender")
    text = require_text(text, "message", max_length=MAX_MESSAGE_LENGTH)
    now = now or timezone.now()

    g = live_group(group_id, now)
    if not is_member(g.id, sender):
        raise ForbiddenError("请先加入该群聊")

    evicted = _evict_for_insert(g.id, now)
    if evicted:
        logger.debug("群 %s 消息已满，淘汰 %s 条", g.id, evicted)
    msg = GroupMessage.objects.create(
        group_id=g.id,
        sender=sender,
        message=text,
        expires_at=g.expires_at,
    )
    recount_group(g.id, now)
    presence.touch(sender, now)
    return _message_data(msg)


def get_group_messages(username, group_id, now=None):
    """最近 50 条未过期消息，按时间正序；附带服务器时间"""
    username = presence.normalize_username(username)
    now = now or timezone.now()
    g = live_group(group_id, now)
    if not is_member(g.id, username):
        raise ForbiddenError("请先加入该群聊")

    latest = list(
        GroupMessage.objects.filter(group_id=g.id, expires_at__gt=now).order_by("-sent_at", "-id")[: _window()]
    )
    return {
        "server_now": now.isoformat(),
        "group": group_data(g),
        "messages": [_message_data(m) for m in reversed(latest)],
    }
