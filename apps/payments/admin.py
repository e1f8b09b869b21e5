from django.contrib import admin

from .models import WebhookLog


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    list_display = ('order_ref', 'gateway_status', 'amount', 'outcome', 'provider', 'created_at')
    list_filter = ('outcome', 'gateway_status', 'created_at')
    search_fields = ('order_ref', 'order__uuid')
    readonly_fields = ('order', 'order_ref', 'gateway_status', 'amount', 'outcome', 'provider', 'payload', 'created_at')

    def has_add_permission(self, request):
        return False
