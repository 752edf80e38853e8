from datetime import timedelta

import pytest
from django.utils import timezone

from apps.account import identity, presence
from apps.account.models import LoginCode, User
from apps.cleanup import sweeps
from apps.cleanup.retention import cleanup_user_preserving_groups
from apps.cleanup.scheduler import SweepScheduler
from apps.im import groups
from apps.im.models import ChatGroup, GroupMember, GroupMessage
from apps.p2p import matching, messages
from apps.p2p.models import Connection, P2PMessage

pytestmark = pytest.mark.django_db


def _age_user(username, minutes):
    User.objects.filter(username=username).update(last_active=timezone.now() - timedelta(minutes=minutes))


def test_cleanup_preserves_created_group(paired):
    g = groups.create_group("alice", "chess")
    soon = timezone.now() + timedelta(minutes=10)
    ChatGroup.objects.filter(id=g["id"]).update(expires_at=soon)
    messages.send_message("alice", "bob", "bye")

    now = timezone.now()
    summary = cleanup_user_preserving_groups("alice", now)

    group = ChatGroup.objects.get(id=g["id"])
    assert group.creator is None
    assert group.expires_at >= now + timedelta(hours=5)
    assert not User.objects.filter(username="alice").exists()
    assert summary["preserved_groups"] == [g["id"]]
    assert summary["connections_ended"] == 1
    assert summary["user_deleted"] is True

    # 连接结束后随消息一起删除
    assert not Connection.objects.filter(id=paired).exists()
    assert not P2PMessage.objects.filter(connection_id=paired).exists()
    assert matching.check("bob")["connected"] is False


def test_cleanup_keeps_later_expiry():
    g = groups.create_group("alice", "chess")
    far = timezone.now() + timedelta(hours=8)
    ChatGroup.objects.filter(id=g["id"]).update(expires_at=far)

    cleanup_user_preserving_groups("alice")
    assert ChatGroup.objects.get(id=g["id"]).expires_at == far


def test_cleanup_deletes_authored_messages_everywhere(chess):
    other = groups.create_group("carol", "music")
    groups.join_group("bob", other["id"])
    groups.send_group_message("bob", chess, "from bob in chess")
    groups.send_group_message("alice", chess, "from alice")
    groups.send_group_message("bob", other["id"], "from bob in music")

    cleanup_user_preserving_groups("bob")

    assert not GroupMember.objects.filter(username="bob").exists()
    assert not GroupMessage.objects.filter(sender="bob").exists()
    assert list(GroupMessage.objects.filter(group_id=chess).values_list("message", flat=True)) == ["from alice"]

    chess_group = ChatGroup.objects.get(id=chess)
    assert chess_group.member_count == 1
    assert chess_group.message_count == 1
    assert chess_group.creator == "alice"
    assert ChatGroup.objects.get(id=other["id"]).message_count == 0


def test_preserved_group_remains_usable_for_members(chess):
    groups.send_group_message("bob", chess, "still here")
    cleanup_user_preserving_groups("alice")

    groups.send_group_message("bob", chess, "alice left")
    data = groups.get_group_messages("bob", chess)
    assert [m["message"] for m in data["messages"]] == ["still here", "alice left"]
    expires_at = ChatGroup.objects.get(id=chess).expires_at
    assert all(m.expires_at == expires_at for m in GroupMessage.objects.filter(group_id=chess))


def test_cleanup_is_idempotent():
    matching.join("alice")
    cleanup_user_preserving_groups("alice")
    summary = cleanup_user_preserving_groups("alice")
    assert summary["user_deleted"] is False
    assert Connection.objects.count() == 0


def test_expire_connections_marks_ended(paired):
    waiting = matching.join("carol")
    Connection.objects.filter(id=waiting["connectionId"]).update(expires_at=timezone.now() - timedelta(seconds=1))

    assert sweeps.expire_connections() == 1
    assert Connection.objects.get(id=waiting["connectionId"]).status == Connection.ENDED
    assert Connection.objects.get(id=paired).status == Connection.ACTIVE
    assert sweeps.expire_connections() == 0


def test_inactive_users_sweep_cleans_idle_users(paired):
    matching.join("carol")
    _age_user("carol", 11)
    _age_user("alice", 11)
    # alice 最近发过消息，仍算活跃
    messages.send_message("alice", "bob", "ping")
    _age_user("alice", 11)

    assert sweeps.inactive_users() == 1
    assert not User.objects.filter(username="carol").exists()
    assert User.objects.filter(username="alice").exists()
    assert User.objects.filter(username="bob").exists()


def test_inactive_usernames_skips_recent_senders(paired):
    matching.join("carol")
    for name in ("alice", "bob", "carol"):
        _age_user(name, 11)
    messages.send_message("bob", "alice", "still typing")
    _age_user("bob", 11)

    cutoff = timezone.now() - timedelta(minutes=10)
    assert sorted(presence.inactive_usernames(cutoff)) == ["alice", "carol"]


def test_inactive_users_sweep_isolates_failures(monkeypatch):
    for name in ("alice", "bob", "carol"):
        matching.join(name)
        _age_user(name, 20)

    real_cleanup = sweeps.cleanup_user_preserving_groups

    def flaky(username, now=None):
        if username == "bob":
            raise RuntimeError("db hiccup")
        return real_cleanup(username, now)

    monkeypatch.setattr(sweeps, "cleanup_user_preserving_groups", flaky)
    assert sweeps.inactive_users() == 2
    assert list(User.objects.values_list("username", flat=True)) == ["bob"]

    monkeypatch.setattr(sweeps, "cleanup_user_preserving_groups", real_cleanup)
    assert sweeps.inactive_users() == 1
    assert User.objects.count() == 0


def test_expired_login_codes_sweep():
    identity.issue_code("FRESH123")
    stale = identity.issue_code("STALE123")
    LoginCode.objects.filter(id=stale.id).update(expires_at=timezone.now() - timedelta(seconds=1))

    assert sweeps.expired_login_codes() == 1
    assert list(LoginCode.objects.values_list("code", flat=True)) == ["FRESH123"]


def test_trim_sweep_enforces_window_globally(chess):
    now = timezone.now()
    GroupMessage.objects.bulk_create(
        [
            GroupMessage(group_id=chess, sender="bob", message=f"m{i}", expires_at=now + timedelta(minutes=5))
            for i in range(55)
        ]
    )
    assert sweeps.trim_group_messages() == 5
    assert GroupMessage.objects.filter(group_id=chess).count() == 50
    assert ChatGroup.objects.get(id=chess).message_count == 50
    assert sweeps.trim_group_messages() == 0


def test_purge_expired_groups(chess):
    groups.send_group_message("bob", chess, "soon gone")
    keep = groups.create_group("carol", "music")
    ChatGroup.objects.filter(id=chess).update(expires_at=timezone.now() - timedelta(seconds=1))

    assert sweeps.purge_expired_groups() == 1
    assert list(ChatGroup.objects.values_list("id", flat=True)) == [keep["id"]]
    assert not GroupMember.objects.filter(group_id=chess).exists()
    assert not GroupMessage.objects.filter(group_id=chess).exists()


def test_purge_ended_connections_removes_old_rows_only(paired):
    messages.send_message("alice", "bob", "hi")
    matching.leave("alice")
    assert sweeps.purge_ended_connections() == 0

    Connection.objects.filter(id=paired).update(expires_at=timezone.now() - timedelta(minutes=11))
    assert sweeps.purge_ended_connections() == 1
    assert not P2PMessage.objects.exists()


def test_scheduler_run_once_dispatches_by_name():
    waiting = matching.join("alice")
    Connection.objects.filter(id=waiting["connectionId"]).update(expires_at=timezone.now() - timedelta(seconds=1))

    scheduler = SweepScheduler()
    assert scheduler.run_once("expire_connections") == 1
    with pytest.raises(ValueError):
        scheduler.run_once("reticulate_splines")


def test_scheduler_start_and_stop():
    calls = []
    scheduler = SweepScheduler(sweeps={"noop": calls.append}, intervals={"noop": 3600})
    scheduler.start()
    assert scheduler.running
    scheduler.start()
    assert len(scheduler._threads) == 1
    scheduler.stop(timeout=1)
    assert not scheduler.running
    assert calls == []
