"""
进程内定时清理：每个任务一个后台线程，按各自间隔执行。

start()/stop() 显式控制；run_once() 同步执行单个任务，测试和管理命令直接调用，不依赖真实时钟。
多个 gunicorn worker 共用 Redis 时，每次执行前用 cache.add 抢租约，同一时段只有一个进程真正执行。
"""
import logging
import os
import threading

from django.conf import settings
from django.core.cache import cache
from django.db import close_old_connections

from .sweeps import SWEEPS

logger = logging.getLogger(__name__)

LEASE_KEY = "cleanup:lease:{}"


class SweepScheduler:
    def __init__(self, sweeps=None, intervals=None):
        self.sweeps = dict(sweeps or SWEEPS)
        self.intervals = dict(intervals or settings.CHAT["SWEEPS"])
        self._stop = threading.Event()
        self._threads = []
        self._lock = threading.Lock()

    @property
    def running(self):
        return any(t.is_alive() for t in self._threads)

    def start(self):
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._threads = []
            for name in self.sweeps:
                t = threading.Thread(target=self._loop, args=(name,), name=f"sweep-{name}", daemon=True)
                t.start()
                self._threads.append(t)
        logger.info("定时清理已启动：%s", ", ".join(f"{n}={self.intervals[n]}s" for n in self.sweeps))

    def stop(self, timeout=5.0):
        with self._lock:
            self._stop.set()
            for t in self._threads:
                t.join(timeout=timeout)
            self._threads = []
        logger.info("定时清理已停止")

    def wait(self, timeout=None):
        """阻塞到 stop() 被调用或超时"""
        return self._stop.wait(timeout)

    def run_once(self, name, now=None):
        """同步执行一次指定任务，返回任务结果（处理条数）"""
        try:
            sweep = self.sweeps[name]
        except KeyError:
            raise ValueError(f"未知的清理任务: {name}")
        return sweep(now)

    def _loop(self, name):
        interval = self.intervals[name]
        while not self._stop.wait(interval):
            self._tick(name, interval)

    def _tick(self, name, interval):
        if not cache.add(LEASE_KEY.format(name), os.getpid(), timeout=max(1, interval - 1)):
            return
        close_old_connections()
        try:
            result = self.run_once(name)
            if result:
                logger.info("清理任务 %s 处理 %s 条", name, result)
        except Exception:
            logger.exception("清理任务 %s 执行失败", name)
        finally:
            close_old_connections()


_scheduler = None
_scheduler_lock = threading.Lock()


def get_scheduler():
    """进程级单例"""
    global _scheduler
    with _scheduler_lock:
        if _scheduler is None:
            _scheduler = SweepScheduler()
        return _scheduler
