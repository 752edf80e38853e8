"""
定时清理任务。每个任务独立、可重复执行，单条记录失败只记日志不影响本轮其余记录。
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db.models import Count
from django.utils import timezone

from apps.account import presence
from apps.account.models import LoginCode
from apps.im.groups import recount_group, trim_group_messages as trim_one_group
from apps.im.models import ChatGroup, GroupMember, GroupMessage
from apps.p2p.models import Connection, P2PMessage
from .retention import cleanup_user_preserving_groups

logger = logging.getLogger(__name__)


def expire_connections(now=None):
    """过期但状态还没改的连接标记为 ended"""
    now = now or timezone.now()
    return (
        Connection.objects.filter(expires_at__lt=now)
        .exclude(status=Connection.ENDED)
        .update(status=Connection.ENDED)
    )


def inactive_users(now=None):
    """超过不活动阈值且期间没发过私聊/群消息的用户，逐个清理"""
    now = now or timezone.now()
    cutoff = now - timedelta(seconds=settings.CHAT["INACTIVITY"])
    cleaned, failed = 0, 0
    for username in presence.inactive_usernames(cutoff):
        try:
            cleanup_user_preserving_groups(username, now)
            cleaned += 1
        except Exception:
            failed += 1
            logger.exception("清理不活跃用户 %s 失败，下一轮重试", username)
    if failed:
        logger.warning("本轮不活跃用户清理失败 %s 个", failed)
    return cleaned


def expired_login_codes(now=None):
    now = now or timezone.now()
    deleted, _ = LoginCode.objects.filter(expires_at__lt=now).delete()
    return deleted


def trim_group_messages(now=None):
    """兜底：每个群只留最近的 N 条，防止有写入绕过了写时淘汰"""
    now = now or timezone.now()
    window = settings.CHAT["GROUP_MESSAGE_WINDOW"]
    overflowing = (
        GroupMessage.objects.values("group_id")
        .annotate(total=Count("id"))
        .filter(total__gt=window)
        .values_list("group_id", flat=True)
    )
    trimmed = 0
    for group_id in list(overflowing):
        try:
            trimmed += trim_one_group(group_id, window)
            recount_group(group_id, now)
        except Exception:
            logger.exception("裁剪群 %s 消息失败", group_id)
    return trimmed


def purge_expired_groups(now=None):
    """删除已过期的群及其成员、消息"""
    now = now or timezone.now()
    purged = 0
    for group_id in list(ChatGroup.objects.filter(expires_at__lte=now).values_list("id", flat=True)):
        try:
            GroupMessage.objects.filter(group_id=group_id).delete()
            GroupMember.objects.filter(group_id=group_id).delete()
            ChatGroup.objects.filter(id=group_id).delete()
            purged += 1
        except Exception:
            logger.exception("删除过期群 %s 失败", group_id)
    return purged


def purge_ended_connections(now=None):
    """结束超过保留期的连接连同消息一起删除"""
    now = now or timezone.now()
    cutoff = now - timedelta(seconds=settings.CHAT["ENDED_CONNECTION_RETENTION"])
    ids = list(
        Connection.objects.filter(status=Connection.ENDED, expires_at__lt=cutoff).values_list("id", flat=True)
    )
    if not ids:
        return 0
    P2PMessage.objects.filter(connection_id__in=ids).delete()
    deleted, _ = Connection.objects.filter(id__in=ids).delete()
    return deleted


SWEEPS = {
    "expire_connections": expire_connections,
    "inactive_users": inactive_users,
    "expired_login_codes": expired_login_codes,
    "trim_group_messages": trim_group_messages,
    "purge_expired_groups": purge_expired_groups,
    "purge_ended_connections": purge_ended_connections,
}
