"""
用户离开（主动退出或长时间不活动）时的清理。

顺序固定，不能调整：
1. 先把该用户创建的群延长到至少 now+5h 并解除归属，保证其他成员看到的不是清理到一半的群；
2. 结束该用户未结束的连接；
3. 删除这些连接上的一对一消息；
4. 删除该用户的群成员关系和他在任何群里发过的消息（创建的群保留，发过的消息不保留）；
5. 删除已结束的连接行；
6. 最后删除用户本身。
各步骤之间不加事务，失败时由调用方记录日志，用户保留 last_active 等下一轮重试。
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from apps.account.models import User
from apps.im.groups import recount_group
from apps.im.models import ChatGroup, GroupMember, GroupMessage
from apps.p2p.matching import involving
from apps.p2p.models import Connection, P2PMessage

logger = logging.getLogger(__name__)


def preserve_created_groups(username, now=None):
    """创建者离开：群有效期取 max(当前, now+宽限期)，creator 置空，群内未过期消息同步延长"""
    now = now or timezone.now()
    grace_until = now + timedelta(seconds=settings.CHAT["GROUP_GRACE"])
    preserved = []
    for g in ChatGroup.objects.filter(creator=username):
        expires_at = max(g.expires_at, grace_until)
        ChatGroup.objects.filter(id=g.id).update(expires_at=expires_at, creator=None)
        GroupMessage.objects.filter(group_id=g.id, expires_at__gt=now).update(expires_at=expires_at)
        preserved.append(g.id)
    return preserved


def cleanup_user_preserving_groups(username, now=None):
    now = now or timezone.now()

    preserved = preserve_created_groups(username, now)

    ended = Connection.objects.filter(involving(username), status__in=Connection.LIVE).update(
        status=Connection.ENDED, expires_at=now
    )

    connection_ids = list(Connection.objects.filter(involving(username)).values_list("id", flat=True))
    p2p_deleted = 0
    if connection_ids:
        p2p_deleted, _ = P2PMessage.objects.filter(connection_id__in=connection_ids).delete()

    touched_groups = set(GroupMember.objects.filter(username=username).values_list("group_id", flat=True))
    touched_groups.update(GroupMessage.objects.filter(sender=username).values_list("group_id", flat=True))
    memberships_deleted, _ = GroupMember.objects.filter(username=username).delete()
    group_messages_deleted, _ = GroupMessage.objects.filter(sender=username).delete()
    for group_id in touched_groups:
        recount_group(group_id, now)

    connections_deleted = 0
    if connection_ids:
        connections_deleted, _ = Connection.objects.filter(id__in=connection_ids).delete()

    user_deleted, _ = User.objects.filter(username=username).delete()

    summary = {
        "username": username,
        "preserved_groups": preserved,
        "connections_ended": ended,
        "p2p_messages_deleted": p2p_deleted,
        "memberships_deleted": memberships_deleted,
        "group_messages_deleted": group_messages_deleted,
        "connections_deleted": connections_deleted,
        "user_deleted": bool(user_deleted),
    }
    logger.info(
        "清理用户 %s：保留群 %s，结束连接 %s，删除私聊消息 %s、群消息 %s",
        username, preserved, ended, p2p_deleted, group_messages_deleted,
    )
    return summary
