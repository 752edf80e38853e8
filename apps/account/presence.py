"""在线状态：按用户名记录最后活动时间，供匹配、群聊和清理判断是否还在使用"""
import re
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from apps.im.models import GroupMessage
from apps.p2p.models import P2PMessage
from apps.system.errors import ValidationError, require_text
from .models import User

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9]{3,20}$")


def _inactivity_seconds():
    return settings.CHAT["INACTIVITY"]


def normalize_username(raw, field="username"):
    """所有带用户名的入口都先过这里：去空白后须为 3-20 位字母或数字"""
    username = require_text(raw, field)
    if not USERNAME_PATTERN.match(username):
        raise ValidationError(f"{field} 须为 3-20 位字母或数字")
    return username


def touch(username, now=None):
    """刷新最后活动时间；首次出现的用户名直接建档"""
    now = now or timezone.now()
    user, _ = User.objects.update_or_create(username=username, defaults={"last_active": now})
    return user


def recent_senders(cutoff):
    """cutoff 之后发过私聊或群消息的用户名"""
    senders = set(P2PMessage.objects.filter(sent_at__gte=cutoff).values_list("sender", flat=True))
    senders.update(GroupMessage.objects.filter(sent_at__gte=cutoff).values_list("sender", flat=True))
    return senders


def inactive_usernames(cutoff):
    """last_active 早于 cutoff，且 cutoff 之后没发过任何消息的用户名"""
    active = recent_senders(cutoff)
    stale = User.objects.filter(last_active__lt=cutoff).values_list("username", flat=True)
    return [username for username in stale if username not in active]


def count_active_users(now=None):
    now = now or timezone.now()
    cutoff = now - timedelta(seconds=_inactivity_seconds())
    return User.objects.filter(last_active__gte=cutoff).count()
