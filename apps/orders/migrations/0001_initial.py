import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("uuid", models.CharField(db_index=True, editable=False, max_length=32, unique=True)),
                ("locale", models.CharField(choices=[("ka", "Georgian"), ("en", "English")], default="ka", max_length=2)),
                ("name", models.CharField(max_length=100)),
                ("surname", models.CharField(max_length=100)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("personal_id", models.CharField(max_length=11)),
                ("phone", models.CharField(max_length=20)),
                ("address", models.CharField(max_length=500)),
                ("delivery_zone", models.CharField(choices=[("tbilisi", "Tbilisi"), ("region", "Region")], max_length=20)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("delivery_price", models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("total", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0"))])),
                ("status", models.CharField(
                    choices=[
                        ("pending", "Pending Payment"), ("paid", "Paid"), ("failed", "Payment Failed"),
                        ("shipped", "Shipped"), ("delivered", "Delivered"), ("cancelled", "Cancelled"),
                    ],
                    db_index=True, default="pending", max_length=20,
                )),
                ("user", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name="orders", to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status", "created_at"], name="orders_status_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("product_id", models.UUIDField(db_index=True)),
                ("name", models.JSONField(help_text='{"ka": "...", "en": "..."}')),
                ("image", models.CharField(blank=True, max_length=500)),
                ("external_code", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("quantity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("line_total", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(0)])),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="items", to="orders.order")),
            ],
            options={
                "db_table": "order_items",
                "ordering": ["position"],
            },
        ),
        migrations.CreateModel(
            name="OrderTimeline",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("from_status", models.CharField(blank=True, max_length=20)),
                ("status", models.CharField(max_length=20)),
                ("source", models.CharField(
                    choices=[("system", "System"), ("gateway", "Payment Gateway"), ("admin", "Administrator")],
                    default="system", max_length=10,
                )),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("note", models.TextField(blank=True)),
                ("created_by", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL,
                )),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="timeline", to="orders.order")),
            ],
            options={
                "db_table": "order_timeline",
                "ordering": ["-timestamp"],
            },
        ),
    ]
