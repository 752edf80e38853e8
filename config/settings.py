# 连接方式全部来自环境变量：DATABASE_URL（未设置时用本地 SQLite），REDIS_URL（未设置时用进程内缓存）
import os
from pathlib import Path

import dj_database_url

BASE_DIR = Path(__file__).resolve().parent.parent
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret-change-in-production")
DEBUG = os.environ.get("DEBUG", "1") == "1"
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "corsheaders",
    "apps.system",
    "apps.account",
    "apps.p2p",
    "apps.im",
    "apps.cleanup",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"
CORS_ALLOW_ALL_ORIGINS = True
APPEND_SLASH = False  # 避免 POST 被重定向导致丢失 body

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": dj_database_url.config(
        default="sqlite:///" + str(BASE_DIR / "db.sqlite3"),
        conn_max_age=int(os.environ.get("DB_CONN_MAX_AGE", "60")),
    )
}

REDIS_URL = os.environ.get("REDIS_URL", "")
if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "ephemeral-chat",
        }
    }

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

LANGUAGE_CODE = "zh-hans"
TIME_ZONE = "UTC"
USE_TZ = True
STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# 聊天核心参数（秒）
CHAT = {
    "WAITING_TTL": 5 * 60,  # 排队等待
    "ACTIVE_TTL": 10 * 60,  # 匹配成功后的会话有效期
    "INACTIVITY": 10 * 60,  # 无活动多久视为离开
    "GROUP_TTL": 30 * 60,
    "GROUP_GRACE": 5 * 60 * 60,  # 创建者离开后群聊保留时长
    "GROUP_MESSAGE_WINDOW": 50,
    "ENDED_CONNECTION_RETENTION": 10 * 60,
    "LOGIN_CODE_TTL": 24 * 60 * 60,
    "SWEEPS": {
        "expire_connections": 60,
        "inactive_users": 120,
        "expired_login_codes": 60 * 60,
        "trim_group_messages": 30 * 60,
        "purge_expired_groups": 5 * 60,
        "purge_ended_connections": 10 * 60,
    },
}
# 定时清理只在服务进程里开启；migrate / shell / 测试默认不启动后台线程
CHAT_SWEEPS_ENABLED = os.environ.get("CHAT_SWEEPS_ENABLED", "0") == "1"

# 日志：apps.* 的 INFO 写入文件，gunicorn 下可 tail -f 查看
_log_dir = BASE_DIR / "logs"
_chat_log_file = "/tmp/chat.log"
try:
    _log_dir.mkdir(parents=True, exist_ok=True)
    _chat_log_file = str(_log_dir / "chat.log")
except OSError:
    pass  # 用 /tmp/chat.log

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "chat": {"format": "%(asctime)s [%(levelname)s] %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "chat"},
        "chat_file": {
            "class": "logging.FileHandler",
            "filename": _chat_log_file,
            "encoding": "utf-8",
            "formatter": "chat",
        },
    },
    "loggers": {
        "apps": {
            "level": os.environ.get("LOG_LEVEL", "INFO"),
            "handlers": ["console", "chat_file"],
            "propagate": False,
        },
    },
}
