"""一对一消息：只能在双方之间有效的 active 连接上发送，消息有效期等于发送时连接的有效期"""
from django.db.models import Q
from django.utils import timezone

from apps.account import presence
from apps.system.errors import ForbiddenError, NotFoundError, require_text
from .models import Connection, P2PMessage

MAX_MESSAGE_LENGTH = 2000


def _between(a, b):
    return Q(user1=a, user2=b) | Q(user1=b, user2=a)


def _message_data(m, receiver):
    sent_at = m.sent_at.isoformat() if m.sent_at else None
    return {
        "id": m.id,
        "connectionId": m.connection_id,
        "sender": m.sender,
        "receiver": receiver,
        "message": m.message,
        "sent_at": sent_at,
        "time": sent_at,
    }


def send_message(sender, receiver, text, now=None):
    sender = presence.normalize_username(sender, "sender")
    receiver = presence.normalize_username(receiver, "receiver")
    text = require_text(text, "message", max_length=MAX_MESSAGE_LENGTH)
    now = now or timezone.now()

    conn = (
        Connection.objects.filter(_between(sender, receiver), status=Connection.ACTIVE, expires_at__gt=now)
        .order_by("-id")
        .first()
    )
    if conn is None:
        raise ForbiddenError("没有与对方的有效连接")

    msg = P2PMessage.objects.create(
        connection_id=conn.id,
        sender=sender,
        message=text,
        expires_at=conn.expires_at,
    )
    presence.touch(sender, now)
    return _message_data(msg, receiver)


def get_messages(username, partner, now=None):
    """双方最近一条连接上的未过期消息，按发送时间正序；附带服务器时间供客户端校时"""
    username = presence.normalize_username(username)
    partner = presence.normalize_username(partner, "partner")
    now = now or timezone.now()

    conn = Connection.objects.filter(_between(username, partner)).order_by("-id").first()
    if conn is None:
        raise NotFoundError("连接不存在")

    msgs = P2PMessage.objects.filter(connection_id=conn.id, expires_at__gt=now).order_by("sent_at", "id")
    items = []
    for m in msgs:
        items.append(_message_data(m, partner if m.sender == username else username))
    return {"server_now": now.isoformat(), "connectionId": conn.id, "messages": items}
