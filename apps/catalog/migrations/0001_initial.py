import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name_ka", models.CharField(max_length=255)),
                ("name_en", models.CharField(blank=True, max_length=255)),
                ("image_url", models.CharField(blank=True, help_text="Main product image URL", max_length=500)),
                ("price", models.DecimalField(decimal_places=2, default=0, help_text="Customer-facing selling price", max_digits=10)),
                ("external_code", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "db_table": "products",
                "ordering": ["name_ka"],
                "indexes": [models.Index(fields=["is_active"], name="products_is_active_idx")],
            },
        ),
    ]
