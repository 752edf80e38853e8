from django.core.management.base import BaseCommand

from apps.account.identity import issue_code


class Command(BaseCommand):
    help = "生成一次性登录口令"

    def add_arguments(self, parser):
        parser.add_argument("--code", help="指定口令，默认随机 8 位")
        parser.add_argument("--ttl", type=int, default=None, help="有效期（分钟），默认 24 小时")

    def handle(self, *args, **options):
        ttl = options["ttl"] * 60 if options["ttl"] else None
        login_code = issue_code(code=options["code"], ttl_seconds=ttl)
        self.stdout.write(f"{login_code.code} 有效期至 {login_code.expires_at.isoformat()}")
