from django.core.management.base import BaseCommand, CommandError

from apps.cleanup.scheduler import get_scheduler
from apps.cleanup.sweeps import SWEEPS


class Command(BaseCommand):
    help = "执行过期清理：--once 指定任务执行一次，--all 全部执行一次，不带参数则前台常驻"

    def add_arguments(self, parser):
        parser.add_argument("--once", choices=sorted(SWEEPS), help="只执行一次指定任务")
        parser.add_argument("--all", action="store_true", help="所有任务各执行一次")

    def handle(self, *args, **options):
        scheduler = get_scheduler()
        if options["once"] or options["all"]:
            names = [options["once"]] if options["once"] else list(SWEEPS)
            for name in names:
                try:
                    result = scheduler.run_once(name)
                except Exception as e:
                    raise CommandError(f"{name} 执行失败: {e}")
                self.stdout.write(f"{name}: {result}")
            return

        scheduler.start()
        try:
            while scheduler.running:
                scheduler.wait(1)
        except KeyboardInterrupt:
            pass
        finally:
            scheduler.stop()
