from django.contrib import admin, messages

from billing.exceptions import BillingServiceError

from .models import Connection, Customer
from .services import set_connection_active


class ConnectionInline(admin.TabularInline):
    model = Connection
    extra = 0
    fields = ["meter_number", "connection_type", "is_active", "created_at"]
    readonly_fields = ["meter_number", "is_active", "created_at"]
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        # Connections get a generated meter number, see customers.services.create_connection
        return False


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "phone", "timezone", "created_at", "updated_at"]
    search_fields = ["name", "email", "phone"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [ConnectionInline]


@admin.register(Connection)
class ConnectionAdmin(admin.ModelAdmin):
    list_display = ["meter_number", "customer", "connection_type", "is_active", "created_at"]
    list_filter = ["connection_type", "is_active"]
    search_fields = ["meter_number", "customer__name"]
    readonly_fields = ["meter_number", "is_active", "created_at", "updated_at"]
    actions = ["activate_connections", "deactivate_connections"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Activate selected connections")
    def activate_connections(self, request, queryset):
        self._set_active(request, queryset, True)

    @admin.action(description="Deactivate selected connections")
    def deactivate_connections(self, request, queryset):
        self._set_active(request, queryset, False)

    def _set_active(self, request, queryset, active):
        changed = 0
        for connection in queryset:
            try:
                set_connection_active(connection, active)
            except BillingServiceError as e:
                self.message_user(request, f"{connection.meter_number}: {e}", messages.WARNING)
            else:
                changed += 1
        if changed:
            self.message_user(request, f"Updated {changed} connection(s).", messages.SUCCESS)
