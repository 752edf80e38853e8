from datetime import timedelta

import pytest
from django.utils import timezone

from apps.im import groups
from apps.im.models import ChatGroup, GroupMember, GroupMessage
from apps.system.errors import ForbiddenError, NotFoundError, ValidationError

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize("topic", ["ab", "x" * 51, "   ", None])
def test_create_group_rejects_bad_topic(topic):
    with pytest.raises(ValidationError):
        groups.create_group("alice", topic)
    assert ChatGroup.objects.count() == 0


@pytest.mark.parametrize("creator", ["ab", "has space", "y" * 40, "é!", None])
def test_create_group_rejects_bad_creator(creator):
    with pytest.raises(ValidationError):
        groups.create_group(creator, "chess")
    assert ChatGroup.objects.count() == 0
    assert GroupMember.objects.count() == 0


def test_group_operations_reject_bad_usernames(chess):
    with pytest.raises(ValidationError):
        groups.join_group("z" * 21, chess)
    with pytest.raises(ValidationError):
        groups.send_group_message("b@b", chess, "hi")
    with pytest.raises(ValidationError):
        groups.get_group_messages("bo", chess)
    with pytest.raises(ValidationError):
        groups.leave_group("bob!", chess)
    assert ChatGroup.objects.get(id=chess).member_count == 2
    assert GroupMessage.objects.count() == 0


def test_create_group_auto_joins_creator():
    before = timezone.now()
    g = groups.create_group("alice", "chess", "  openings  ")

    assert g["creator"] == "alice"
    assert g["description"] == "openings"
    assert g["member_count"] == 1
    assert g["message_count"] == 0
    assert GroupMember.objects.filter(group_id=g["id"], username="alice").exists()
    stored = ChatGroup.objects.get(id=g["id"])
    assert before + timedelta(minutes=29) < stored.expires_at <= timezone.now() + timedelta(minutes=30)


def test_list_groups_filters_and_orders():
    groups.create_group("alice", "Chess Club")
    groups.create_group("bob", "cooking", "french CHESS pastries")
    groups.create_group("carol", "music")
    expired = groups.create_group("dave", "old chess")
    ChatGroup.objects.filter(id=expired["id"]).update(expires_at=timezone.now() - timedelta(seconds=1))

    topics = [g["topic"] for g in groups.list_groups("chess")]
    assert topics == ["cooking", "Chess Club"]
    assert [g["topic"] for g in groups.list_groups()] == ["music", "cooking", "Chess Club"]
    assert len(groups.list_groups(limit=2)) == 2


def test_list_groups_rejects_non_numeric_limit():
    with pytest.raises(ValidationError):
        groups.list_groups(limit="lots")


def test_join_group_is_idempotent(chess):
    again = groups.join_group("bob", chess)
    assert again["joined"] is False
    assert GroupMember.objects.filter(group_id=chess, username="bob").count() == 1
    assert ChatGroup.objects.get(id=chess).member_count == 2


def test_join_expired_group_is_not_found():
    g = groups.create_group("alice", "chess")
    ChatGroup.objects.filter(id=g["id"]).update(expires_at=timezone.now() - timedelta(seconds=1))
    with pytest.raises(NotFoundError):
        groups.join_group("bob", g["id"])


def test_join_missing_group_is_not_found():
    with pytest.raises(NotFoundError):
        groups.join_group("bob", 9999)


def test_group_survives_with_zero_members():
    g = groups.create_group("alice", "chess")
    assert groups.leave_group("alice", g["id"]) == {"left": True}

    stored = ChatGroup.objects.get(id=g["id"])
    assert stored.member_count == 0
    assert groups.get_group(g["id"])["topic"] == "chess"


def test_non_member_cannot_send_or_read(chess):
    with pytest.raises(ForbiddenError):
        groups.send_group_message("carol", chess, "let me in")
    with pytest.raises(ForbiddenError):
        groups.get_group_messages("carol", chess)
    assert GroupMessage.objects.count() == 0


def test_blank_group_message_is_rejected(chess):
    with pytest.raises(ValidationError):
        groups.send_group_message("bob", chess, "")


def test_send_to_expired_group_is_not_found(chess):
    ChatGroup.objects.filter(id=chess).update(expires_at=timezone.now() - timedelta(seconds=1))
    with pytest.raises(NotFoundError):
        groups.send_group_message("bob", chess, "anyone?")


def test_fifty_first_message_evicts_oldest(chess):
    for i in range(1, 51):
        groups.send_group_message("alice", chess, f"m{i}")
    assert ChatGroup.objects.get(id=chess).message_count == 50

    groups.send_group_message("bob", chess, "m51")

    live = list(GroupMessage.objects.filter(group_id=chess).order_by("sent_at", "id").values_list("message", flat=True))
    assert live == [f"m{i}" for i in range(2, 52)]
    assert ChatGroup.objects.get(id=chess).message_count == 50

    data = groups.get_group_messages("bob", chess)
    assert len(data["messages"]) == 50
    assert data["messages"][0]["message"] == "m2"
    assert data["messages"][-1]["message"] == "m51"


def test_group_message_expiry_follows_group(chess):
    msg = groups.send_group_message("bob", chess, "hello")
    assert GroupMessage.objects.get(id=msg["id"]).expires_at == ChatGroup.objects.get(id=chess).expires_at


def test_end_to_end_group_conversation():
    g = groups.create_group("alice", "chess")
    groups.join_group("bob", g["id"])

    sent = [("alice", "e4"), ("bob", "e5"), ("alice", "Nf3")]
    for sender, text in sent:
        groups.send_group_message(sender, g["id"], text)

    data = groups.get_group_messages("bob", g["id"])
    assert [(m["sender"], m["message"]) for m in data["messages"]] == sent
    assert data["group"]["member_count"] == 2
    assert data["group"]["message_count"] == 3
    assert data["server_now"]


def test_trim_group_messages_keeps_newest(chess):
    now = timezone.now()
    GroupMessage.objects.bulk_create(
        [
            GroupMessage(group_id=chess, sender="alice", message=f"m{i}", expires_at=now + timedelta(minutes=5))
            for i in range(60)
        ]
    )
    assert groups.trim_group_messages(chess) == 10
    remaining = list(GroupMessage.objects.filter(group_id=chess).order_by("id").values_list("message", flat=True))
    assert remaining == [f"m{i}" for i in range(10, 60)]
