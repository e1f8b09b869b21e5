import json

from django.contrib import admin, messages
from django.utils.safestring import mark_safe

from apps.utils.exceptions import BusinessLogicException
from .models import Order, OrderItem, OrderTimeline
from .services import OrderService


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('position', 'product_id', 'formatted_name', 'external_code',
                       'quantity', 'unit_price', 'line_total')
    exclude = ('name', 'image')

    def formatted_name(self, obj):
        return json.dumps(obj.name, ensure_ascii=False)

    formatted_name.short_description = "Name"

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class OrderTimelineInline(admin.TabularInline):
    model = OrderTimeline
    extra = 0
    readonly_fields = ('timestamp', 'from_status', 'status', 'source', 'note', 'created_by')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


def _transition_action(target):
    def action(modeladmin, request, queryset):
        service = OrderService()
        done = 0
        for order in queryset:
            try:
                service.transition_status(order.pk, target, actor=request.user)
                done += 1
            except BusinessLogicException as e:
                modeladmin.message_user(request, f"{order.uuid}: {e.message}", level=messages.WARNING)
        if done:
            modeladmin.message_user(request, f"{done} order(s) moved to {target}.")

    action.__name__ = f"mark_{target}"
    action.short_description = f"Mark selected orders as {target}"
    return action


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-only order view. Status moves only through the actions below so
    that every change goes through the lifecycle rules.
    """
    list_display = ('uuid', 'name', 'surname', 'email', 'status', 'total', 'delivery_zone', 'created_at')
    list_filter = ('status', 'delivery_zone', 'created_at')
    search_fields = ('uuid', 'id', 'email', 'phone', 'personal_id', 'user__email')

    inlines = [OrderItemInline, OrderTimelineInline]
    actions = [_transition_action(s) for s in ('shipped', 'delivered', 'cancelled')]

    readonly_fields = (
        'id', 'uuid', 'user', 'status', 'locale',
        'name', 'surname', 'email', 'personal_id', 'phone', 'address', 'delivery_zone',
        'subtotal', 'delivery_price', 'total',
        'formatted_items', 'created_at', 'updated_at',
    )

    fieldsets = (
        ('Order Details', {
            'fields': ('uuid', 'id', 'status', 'user', 'locale')
        }),
        ('Customer', {
            'fields': ('name', 'surname', 'email', 'personal_id', 'phone', 'address', 'delivery_zone')
        }),
        ('Financials', {
            'fields': ('subtotal', 'delivery_price', 'total')
        }),
        ('System Data', {
            'fields': ('formatted_items', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def formatted_items(self, obj):
        """Raw item snapshot, handy when support compares with the gateway"""
        content = json.dumps(
            [
                {"product_id": str(i.product_id), "quantity": i.quantity, "unit_price": str(i.unit_price)}
                for i in obj.items.all()
            ],
            indent=2,
        )
        return mark_safe(f"<pre>{content}</pre>")

    formatted_items.short_description = "Item Snapshot"
