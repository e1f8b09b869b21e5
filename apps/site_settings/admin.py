from django.contrib import admin

from .models import SiteSettings


@admin.register(SiteSettings)
class SiteSettingsAdmin(admin.ModelAdmin):
    list_display = (
        "key",
        "delivery_tbilisi_price",
        "delivery_tbilisi_free_over",
        "delivery_region_price",
        "delivery_region_free_over",
        "updated_at",
    )
    readonly_fields = ("key", "created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):
        return False
