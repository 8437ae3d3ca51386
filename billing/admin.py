from django.contrib import admin, messages

from billing.exceptions import BillingServiceError

from .models import Bill, Payment
from .services import send_bill_reminder


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ["amount", "method", "paid_at", "customer"]
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    """Bills are issued by the engine; the admin only reads them and sends reminders."""

    list_display = ["id", "customer", "amount", "due_date", "is_paid", "created_at"]
    list_filter = ["is_paid", "due_date"]
    search_fields = ["id", "customer__name", "reading__connection__meter_number"]
    date_hierarchy = "created_at"
    readonly_fields = ["id", "reading", "customer", "amount", "due_date", "is_paid", "created_at"]
    inlines = [PaymentInline]
    actions = ["send_payment_reminders"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.action(description="Send payment reminder for selected unpaid bills")
    def send_payment_reminders(self, request, queryset):
        sent = 0
        failed = 0
        for bill in queryset.filter(is_paid=False):
            try:
                result = send_bill_reminder(str(bill.pk))
            except BillingServiceError as e:
                self.message_user(request, f"Bill {bill.pk}: {e}", messages.WARNING)
                continue
            if result.delivery.success:
                sent += 1
            else:
                failed += 1
        self.message_user(request, f"Sent {sent} reminder(s), {failed} failed to deliver.")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["id", "bill", "customer", "amount", "method", "paid_at"]
    list_filter = ["method", "paid_at"]
    search_fields = ["id", "bill__id", "customer__name"]
    readonly_fields = ["id", "bill", "customer", "amount", "method", "paid_at"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
