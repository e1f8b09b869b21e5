from rest_framework import serializers

from .models import SiteSettings


class SiteSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = SiteSettings
        fields = [
            "delivery_tbilisi_price",
            "delivery_tbilisi_free_over",
            "delivery_region_price",
            "delivery_region_free_over",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]
