"""
匿名一对一匹配：随机从等待中的连接里抢一个，抢不到就自己排队。

连接状态只会 waiting -> active -> ended 单向推进。抢占用条件更新（只有仍是 waiting 且
没有第二个人时才写入），两个人同时抢同一行时只有一个能成功，另一个继续试下一行。
过期以 expires_at 为准，状态列可能还没被定时任务改成 ended。
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from apps.account import presence
from .models import Connection

logger = logging.getLogger(__name__)

# 每次最多尝试抢占的候选数
MATCH_CANDIDATES = 10


def _ttl(key):
    return timedelta(seconds=settings.CHAT[key])


def involving(username):
    return Q(user1=username) | Q(user2=username)


def live_connection_for(username, now=None):
    """该用户未结束且未过期的连接（最多一条）"""
    now = now or timezone.now()
    return (
        Connection.objects.filter(involving(username), status__in=Connection.LIVE, expires_at__gt=now)
        .order_by("-id")
        .first()
    )


def describe(conn, username):
    if conn is None:
        return {"matched": False, "connected": False, "waiting": False, "partner": None, "connectionId": None}
    active = conn.status == Connection.ACTIVE
    return {
        "matched": active,
        "connected": active,
        "waiting": conn.status == Connection.WAITING,
        "partner": conn.partner_of(username) if active else None,
        "connectionId": conn.id,
    }


def claim(connection_id, username, now=None):
    """条件更新抢占等待中的连接，返回是否抢到"""
    now = now or timezone.now()
    updated = Connection.objects.filter(
        id=connection_id,
        status=Connection.WAITING,
        user2__isnull=True,
        expires_at__gt=now,
    ).update(user2=username, status=Connection.ACTIVE, expires_at=now + _ttl("ACTIVE_TTL"))
    return updated == 1


def join(username, now=None):
    """加入匹配：已有连接原样返回；否则随机抢一个等待者，抢不到就新建等待连接"""
    username = presence.normalize_username(username)
    now = now or timezone.now()
    presence.touch(username, now)

    current = live_connection_for(username, now)
    if current is not None:
        return describe(current, username)

    candidates = list(
        Connection.objects.filter(status=Connection.WAITING, user2__isnull=True, expires_at__gt=now)
        .exclude(user1=username)
        .order_by("?")
        .values_list("id", flat=True)[:MATCH_CANDIDATES]
    )
    for connection_id in candidates:
        if claim(connection_id, username, now):
            conn = Connection.objects.get(id=connection_id)
            logger.info("匹配成功 %s <-> %s connection=%s", conn.user1, username, conn.id)
            return describe(conn, username)
        logger.debug("连接 %s 已被抢占，尝试下一个", connection_id)

    conn = Connection.objects.create(
        user1=username,
        status=Connection.WAITING,
        expires_at=now + _ttl("WAITING_TTL"),
    )
    return describe(conn, username)


def check(username, now=None):
    username = presence.normalize_username(username)
    now = now or timezone.now()
    presence.touch(username, now)
    return describe(live_connection_for(username, now), username)


def leave(username, now=None):
    """结束该用户所有未结束的连接，消息保留到后续清理"""
    username = presence.normalize_username(username)
    now = now or timezone.now()
    ended = Connection.objects.filter(involving(username), status__in=Connection.LIVE).update(
        status=Connection.ENDED, expires_at=now
    )
    if ended:
        logger.info("%s 离开一对一聊天，结束 %s 个连接", username, ended)
    return ended


def queue_stats(now=None):
    now = now or timezone.now()
    live = Connection.objects.filter(expires_at__gt=now)
    return {
        "waiting": live.filter(status=Connection.WAITING).count(),
        "active_connections": live.filter(status=Connection.ACTIVE).count(),
        "total_active_users": presence.count_active_users(now),
    }
