from django.db import models


class User(models.Model):
    """匿名临时用户，只在聊天期间或其创建的群未过期时存在"""
    username = models.CharField(max_length=20, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    last_active = models.DateTimeField()

    class Meta:
        db_table = "account_user"


class LoginCode(models.Model):
    """进入匿名聊天前的一次性口令，过期后由定时任务删除"""
    id = models.BigAutoField(primary_key=True)
    code = models.CharField(max_length=32, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        db_table = "account_login_code"
        verbose_name = "登录口令"
        verbose_name_plural = "登录口令"
