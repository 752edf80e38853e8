from django.db import models


class Connection(models.Model):
    """一对一匿名会话：waiting -> active -> ended，ended 不可恢复"""
    WAITING = "waiting"
    ACTIVE = "active"
    ENDED = "ended"
    STATUS_CHOICES = [(WAITING, "等待匹配"), (ACTIVE, "聊天中"), (ENDED, "已结束")]
    LIVE = (WAITING, ACTIVE)

    id = models.BigAutoField(primary_key=True)
    user1 = models.CharField(max_length=20, db_index=True)
    user2 = models.CharField(max_length=20, null=True, blank=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=WAITING)
    started_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()

    class Meta:
        db_table = "p2p_connection"
        indexes = [models.Index(fields=["status", "expires_at"], name="p2p_conn_status_expires_idx")]

    def partner_of(self, username):
        return self.user2 if username == self.user1 else self.user1


class P2PMessage(models.Model):
    id = models.BigAutoField(primary_key=True)
    connection_id = models.BigIntegerField(db_index=True)
    sender = models.CharField(max_length=20, db_index=True)
    message = models.TextField()
    sent_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()

    class Meta:
        db_table = "p2p_message"
