# apps/catalog/admin.py
from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name_ka", "name_en", "price", "external_code", "is_active")
    search_fields = ("name_ka", "name_en", "external_code")
    list_filter = ("is_active",)
    list_editable = ("price", "is_active")
    readonly_fields = ("created_at", "updated_at")
