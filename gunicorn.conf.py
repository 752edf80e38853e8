# gunicorn.conf.py
import os

# 清理线程跟随 worker 进程，多 worker 时靠 Redis 租约避免重复执行
workers = int(os.getenv("GUNICORN_WORKERS", 2))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", 4))
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
keepalive = 2
max_requests = 1000
max_requests_jitter = 50

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

proc_name = "ephemeral-chat"

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:" + os.getenv("PORT", "3000"))

wsgi_app = "config.wsgi:application"
