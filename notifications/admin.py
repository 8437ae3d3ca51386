from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["title", "customer", "bill", "is_read", "sent_at"]
    list_filter = ["is_read", "sent_at"]
    search_fields = ["title", "customer__name"]
    date_hierarchy = "sent_at"
    readonly_fields = ["customer", "bill", "title", "message", "is_read", "sent_at"]

    def has_add_permission(self, request):
        return False
