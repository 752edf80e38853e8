from django.db import models


class ChatGroup(models.Model):
    """话题群聊。创建者离开后 creator 置空，群按自己的 expires_at 继续存在"""
    id = models.BigAutoField(primary_key=True)
    topic = models.CharField(max_length=50)
    description = models.CharField(max_length=500, null=True, blank=True)
    creator = models.CharField(max_length=20, null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(db_index=True)
    member_count = models.IntegerField(default=0)
    message_count = models.IntegerField(default=0)

    class Meta:
        db_table = "im_chat_group"


class GroupMember(models.Model):
    id = models.BigAutoField(primary_key=True)
    group_id = models.BigIntegerField()
    username = models.CharField(max_length=20, db_index=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "im_group_member"
        unique_together = (("group_id", "username"),)


class GroupMessage(models.Model):
    id = models.BigAutoField(primary_key=True)
    group_id = models.BigIntegerField(db_index=True)
    sender = models.CharField(max_length=20, db_index=True)
    message = models.TextField()
    sent_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()

    class Meta:
        db_table = "im_group_message"
