"""登录口令校验、用户名占用检查与建档"""
import secrets
import string
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone

from apps.system.errors import ConflictError, NotFoundError, require_text
from .models import LoginCode, User
from .presence import normalize_username

CODE_ALPHABET = string.ascii_uppercase + string.digits


def verify_code(raw_code, now=None):
    code = require_text(raw_code, "code", max_length=32)
    now = now or timezone.now()
    if not LoginCode.objects.filter(code=code, expires_at__gt=now).exists():
        raise NotFoundError("口令无效或已过期")
    return True


def issue_code(code=None, ttl_seconds=None, now=None):
    now = now or timezone.now()
    ttl = ttl_seconds or settings.CHAT["LOGIN_CODE_TTL"]
    code = code or "".join(secrets.choice(CODE_ALPHABET) for _ in range(8))
    return LoginCode.objects.create(code=code, expires_at=now + timedelta(seconds=ttl))


def username_available(raw):
    username = normalize_username(raw)
    return not User.objects.filter(username=username).exists()


def create_user(raw, now=None):
    username = normalize_username(raw)
    now = now or timezone.now()
    if User.objects.filter(username=username).exists():
        raise ConflictError("用户名已被占用")
    try:
        return User.objects.create(username=username, last_active=now)
    except IntegrityError:
        # 检查与插入之间被并发请求抢先
        raise ConflictError("用户名已被占用")
