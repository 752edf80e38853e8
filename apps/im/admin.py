from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import ChatGroup


@admin.register(ChatGroup)
class ChatGroupAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "topic",
        "creator_display",
        "member_count",
        "message_count",
        "status_display",
        "created_at",
        "expires_at",
    )
    search_fields = ("topic", "description", "creator")
    ordering = ("-created_at",)
    date_hierarchy = "created_at"
    list_per_page = 20
    readonly_fields = ("member_count", "message_count")

    def creator_display(self, obj):
        # 创建者退出后群仍保留，creator 为空
        return obj.creator or format_html('<span style="color: gray;">已离开</span>')

    creator_display.short_description = "创建者"

    def status_display(self, obj):
        if obj.expires_at > timezone.now():
            return format_html('<span style="color: green;">进行中</span>')
        return format_html('<span style="color: gray;">已过期</span>')

    status_display.short_description = "状态"
