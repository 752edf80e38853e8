from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from .models import LoginCode, User


@admin.register(LoginCode)
class LoginCodeAdmin(admin.ModelAdmin):
    list_display = ("id", "code", "status_display", "created_at", "expires_at")
    search_fields = ("code",)
    ordering = ("-created_at",)
    list_per_page = 20

    def status_display(self, obj):
        if obj.expires_at > timezone.now():
            return format_html('<span style="color: green;">有效</span>')
        return format_html('<span style="color: gray;">已过期</span>')

    status_display.short_description = "状态"


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "username", "created_at", "last_active")
    search_fields = ("username",)
    ordering = ("-last_active",)
    list_per_page = 50
